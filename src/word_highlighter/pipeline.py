from __future__ import annotations

import logging

from .cache import DEFAULT_CONTEXT_CHARS, AnnotationCache, make_cache_key
from .errors import classify_error, not_configured
from .language import is_czech, language_name
from .llm.base import GenerativeClient
from .models import AnalysisResult
from .rate_limit import RateLimiter

logger = logging.getLogger(__name__)

HOVER_PROMPT_TEMPLATE = (
    "Language: {language}\n"
    'Word or phrase to analyze: "{text}"\n'
    "\n"
    "Context from the webpage:\n"
    '"{context}"\n'
    "\n"
    "Task: Analyze this word or phrase and explain its meaning or significance "
    "in {language} language.\n"
    "Keep the explanation brief (1-2 sentences).\n"
    "If it's a proper noun, explain what/who it refers to.\n"
    "If it's a technical term, provide a simple definition.\n"
    "If it's a common word, explain its usage in this context.\n"
    "\n"
    "IMPORTANT: Your response MUST be in {language} language only.\n"
    "For Czech words, use proper Czech grammar and diacritics."
)

CLICK_PROMPT_TEMPLATE = (
    'Analyze the {language} word or phrase: "{text}"\n'
    "\n"
    "Provide a detailed explanation including:\n"
    "1. Definition or meaning\n"
    "2. Usage examples\n"
    "3. Any relevant additional information (etymology, related terms, etc.)\n"
    "\n"
    "Response MUST be in {language} language.\n"
    "Keep the total response under 4 sentences."
)

SELECTION_PROMPT_TEMPLATE = (
    'Analyze this {language} text: "{text}"\n'
    "\n"
    "Provide:\n"
    "1. Main topic or meaning\n"
    "2. Key points or insights\n"
    "3. Any relevant context or explanation\n"
    "\n"
    "Response MUST be in {language} language.\n"
    "Keep the response concise (max 3-4 sentences)."
)


class AnalysisRequestPipeline:
    """
    Turns hover, click and selection requests into explanations.

    Every path checks the client, the rate limiter and classifies failures
    the same way; only hover results are cached. No exception leaves an
    analyze call.
    """

    def __init__(
        self,
        cache: AnnotationCache,
        limiter: RateLimiter,
        client: GenerativeClient | None = None,
        *,
        document_lang: str | None = None,
        cache_context_chars: int = DEFAULT_CONTEXT_CHARS,
        prompt_context_chars: int = 500,
    ) -> None:
        self.cache = cache
        self.limiter = limiter
        self._client = client
        self.document_lang = document_lang
        self._cache_context_chars = cache_context_chars
        self._prompt_context_chars = prompt_context_chars

    @property
    def client(self) -> GenerativeClient | None:
        return self._client

    def set_client(self, client: GenerativeClient | None) -> None:
        self._client = client

    async def hover_analyze(self, token: str, context: str = "") -> AnalysisResult:
        """Brief contextual explanation, served from the cache when possible."""
        key = make_cache_key(token, context, self._cache_context_chars)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Cache hit for %r", token)
            return AnalysisResult(cached)

        prompt = HOVER_PROMPT_TEMPLATE.format(
            language=language_name(token),
            text=token,
            context=context[: self._prompt_context_chars],
        )
        result = await self._request(token, prompt)
        if result.ok:
            self.cache.put(key, result.text)
        return result

    async def click_analyze(self, token: str) -> AnalysisResult:
        """Detailed explanation; always hits the service."""
        prompt = CLICK_PROMPT_TEMPLATE.format(language=language_name(token), text=token)
        return await self._request(token, prompt)

    async def selection_analyze(self, text: str) -> AnalysisResult:
        """Topic and key points for an arbitrary selected span."""
        prompt = SELECTION_PROMPT_TEMPLATE.format(language=language_name(text), text=text)
        return await self._request(text, prompt)

    async def _request(self, text: str, prompt: str) -> AnalysisResult:
        client = self._client
        if client is None:
            return AnalysisResult.failure(not_configured(text, self.document_lang))
        try:
            self.limiter.check_limit()
            output = await client.generate(prompt)
        except Exception as exc:
            return AnalysisResult.failure(classify_error(exc, text))
        output = output.strip()
        if not output:
            output = (
                "Nelze vygenerovat vysvětlení."
                if is_czech(text)
                else "Unable to generate explanation."
            )
        return AnalysisResult(output)
