from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import List, TypedDict

import typer
import yaml

from .cache import AnnotationCache
from .config import HighlighterConfig, OpenAISettings, load_config
from .dom import parse_html, to_html
from .language import detect_language
from .llm import OpenAIExplainClient
from .models import AnalysisResult
from .pipeline import AnalysisRequestPipeline
from .rate_limit import RateLimiter
from .scanner import HIGHLIGHT_CLASS, DocumentScanner
from .tokenization import TokenClassifier, is_candidate

app = typer.Typer(help="Word highlighter CLI.", no_args_is_help=True)


class HighlightSummary(TypedDict):
    input: str
    segments: int
    highlights: int
    words: List[str]


class WordDecision(TypedDict):
    word: str
    candidate: bool
    language: str


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        "WARNING", "--log-level", help="Logging level (DEBUG, INFO, WARNING, ...)."
    ),
) -> None:
    """Highlight interesting words and explain them with an LLM."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def highlight(
    input_path: Path = typer.Option(
        ..., exists=True, readable=True, dir_okay=False, file_okay=True
    ),
    output_path: Path | None = typer.Option(
        None, "--output-path", "-o", help="Where to write the annotated HTML."
    ),
    lang: str | None = typer.Option(None, "--lang", help="Document language override."),
    config: Path | None = typer.Option(None, "--config", "-c"),
) -> None:
    """Annotate candidate words in an HTML file and emit a JSON summary."""
    cfg = load_config(config)
    markup = input_path.read_text(encoding="utf-8")
    document = parse_html(markup, lang=lang or cfg.document_lang)
    # Without a task queue the scanner commits its batch immediately.
    scanner = DocumentScanner(classifier=TokenClassifier(frozenset(cfg.extra_stop_words)))
    batch = scanner.highlight(document.body)

    summary: HighlightSummary = {
        "input": str(input_path),
        "segments": len(batch),
        "highlights": sum(item.highlight_count for item in batch),
        "words": [el.text_content for el in document.find_by_class(HIGHLIGHT_CLASS)],
    }
    if output_path is not None:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(to_html(document), encoding="utf-8")
    typer.echo(json.dumps(summary, indent=2, ensure_ascii=False))


@app.command()
def classify(words: List[str] = typer.Argument(..., help="Words to classify.")) -> None:
    """Print the highlight decision for each word as JSON."""
    decisions: List[WordDecision] = [
        {
            "word": word,
            "candidate": is_candidate(word),
            "language": detect_language(word).value,
        }
        for word in words
    ]
    typer.echo(json.dumps(decisions, indent=2, ensure_ascii=False))


@app.command()
def explain(
    word: str = typer.Argument(..., help="Word or phrase to explain."),
    context: str = typer.Option("", "--context", help="Surrounding text for the hover prompt."),
    detailed: bool = typer.Option(
        False, "--detailed/--brief", help="Use the detailed (click) prompt."
    ),
    config: Path | None = typer.Option(None, "--config", "-c"),
    openai_model: str | None = typer.Option(None, "--openai-model", help="OpenAI model identifier."),
    openai_api_key: str | None = typer.Option(
        None, "--openai-api-key", help="Explicit OpenAI API key (prefer env vars)."
    ),
    openai_api_key_env: str | None = typer.Option(
        None, "--openai-api-key-env", help="Environment variable holding the API key."
    ),
) -> None:
    """Explain one word the way hovering (or clicking) it would."""
    cfg = load_config(config)
    _apply_openai_overrides(cfg.openai, openai_model, openai_api_key, openai_api_key_env)
    pipeline = _build_pipeline(cfg)
    if detailed:
        result = asyncio.run(pipeline.click_analyze(word))
    else:
        result = asyncio.run(pipeline.hover_analyze(word, context))
    _emit(result)


@app.command("analyze-text")
def analyze_text(
    text: str = typer.Argument(..., help="Text to summarize."),
    config: Path | None = typer.Option(None, "--config", "-c"),
    openai_model: str | None = typer.Option(None, "--openai-model", help="OpenAI model identifier."),
    openai_api_key: str | None = typer.Option(
        None, "--openai-api-key", help="Explicit OpenAI API key (prefer env vars)."
    ),
    openai_api_key_env: str | None = typer.Option(
        None, "--openai-api-key-env", help="Environment variable holding the API key."
    ),
) -> None:
    """Summarize a span of text the way a selection would."""
    cfg = load_config(config)
    _apply_openai_overrides(cfg.openai, openai_model, openai_api_key, openai_api_key_env)
    pipeline = _build_pipeline(cfg)
    _emit(asyncio.run(pipeline.selection_analyze(text)))


@app.command("print-config")
def print_config() -> None:
    """Print the default configuration as YAML."""
    cfg = HighlighterConfig()
    typer.echo(yaml.safe_dump(cfg.to_dict(), sort_keys=False, allow_unicode=True))


def main() -> None:
    app()


def _apply_openai_overrides(
    settings: OpenAISettings,
    model: str | None,
    api_key: str | None,
    api_key_env: str | None,
) -> None:
    """Override OpenAI settings from CLI flags."""
    if model:
        settings.model = model
    if api_key:
        settings.api_key = api_key
    if api_key_env:
        settings.api_key_env = api_key_env


def _resolve_openai_api_key(settings: OpenAISettings) -> str | None:
    """Resolve the API key from explicit config or the configured environment variable."""
    if settings.api_key:
        return settings.api_key
    env_name = settings.api_key_env or "OPENAI_API_KEY"
    return os.environ.get(env_name) or None


def _build_pipeline(config: HighlighterConfig) -> AnalysisRequestPipeline:
    api_key = _resolve_openai_api_key(config.openai)
    client = OpenAIExplainClient(config.openai, api_key=api_key) if api_key else None
    return AnalysisRequestPipeline(
        AnnotationCache(config.cache_max_size),
        RateLimiter(config.rate_limit_requests, config.rate_limit_window_ms),
        client,
        document_lang=config.document_lang,
        cache_context_chars=config.cache_context_chars,
        prompt_context_chars=config.prompt_context_chars,
    )


def _emit(result: AnalysisResult) -> None:
    if result.ok:
        typer.echo(result.text)
        return
    typer.echo(result.text, err=True)
    raise typer.Exit(code=1)


if __name__ == "__main__":
    main()
