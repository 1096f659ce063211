from .base import CallableClient, GenerativeClient
from .openai_client import OpenAIExplainClient

__all__ = ["CallableClient", "GenerativeClient", "OpenAIExplainClient"]
