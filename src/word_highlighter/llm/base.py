from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Awaitable, Callable


class GenerativeClient(ABC):
    """Abstract text-generation service used for explanations."""

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """Return generated text; failures are raised as-is."""
        raise NotImplementedError


class CallableClient(GenerativeClient):
    """Adapt an arbitrary async callable into the GenerativeClient interface."""

    def __init__(self, func: Callable[[str], Awaitable[str]]) -> None:
        self._func = func

    async def generate(self, prompt: str) -> str:
        return await self._func(prompt)
