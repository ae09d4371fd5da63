"""
Provider Adapters — LangChain Chat Models behind TextGenerator
══════════════════════════════════════════════════════════════

  build_chat_model(settings)  → BaseChatModel for the configured provider
  ChatModelGenerator(model)   → TextGenerator over any BaseChatModel
  build_generator(settings)   → both of the above in one call

Supported providers:
  gemini  → langchain_google_genai.ChatGoogleGenerativeAI
  openai  → langchain_openai.ChatOpenAI

Retry classification
────────────────────
  Every SDK exception is converted to ModelProviderError. `retryable` is
  decided from the exception type or the HTTP status it carries:

    Retryable:     429, 500, 502, 503, 504, timeouts, connection failures,
                   openai RateLimitError / APIConnectionError / InternalServerError
    Non-retryable: everything else (400 bad request, 401/403 auth, 404 model)

  Provider SDK imports are deferred to the builder functions so that only the
  configured provider's package is loaded.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any

import httpx
import openai
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage

from studybuddy.core.config import Settings, get_settings
from studybuddy.core.errors import ModelProviderError
from studybuddy.llm.base import TextGenerator

logger = logging.getLogger(__name__)


class Provider(str, Enum):
    GEMINI = "gemini"
    OPENAI = "openai"


# ---------------------------------------------------------------------------
# Retryable exception detection
# ---------------------------------------------------------------------------

RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({429, 500, 502, 503, 504})

_RETRYABLE_EXCEPTION_TYPES: tuple[type[BaseException], ...] = (
    asyncio.TimeoutError,
    TimeoutError,
    ConnectionError,
    httpx.TransportError,
    openai.RateLimitError,
    openai.APIConnectionError,     # includes APITimeoutError
    openai.InternalServerError,
)


def status_code_of(exc: BaseException) -> int | None:
    """HTTP status exposed by the exception, if any (`status_code` or integer `code`)."""
    for attr in ("status_code", "code"):
        value = getattr(exc, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    response = getattr(exc, "response", None)
    value = getattr(response, "status_code", None)
    if isinstance(value, int):
        return value
    return None


def is_retryable(exc: BaseException) -> bool:
    """True for transient provider failures worth another attempt."""
    if isinstance(exc, _RETRYABLE_EXCEPTION_TYPES):
        return True
    return status_code_of(exc) in RETRYABLE_STATUS_CODES


# ---------------------------------------------------------------------------
# Chat model factory
# ---------------------------------------------------------------------------

def build_chat_model(settings: Settings | None = None) -> BaseChatModel:
    """Instantiate the LangChain chat model for `settings.llm_provider`."""
    settings = settings or get_settings()
    try:
        provider = Provider(settings.llm_provider.lower())
    except ValueError:
        raise ValueError(f"Unsupported LLM provider: {settings.llm_provider}") from None

    if provider == Provider.GEMINI:
        return _build_gemini(settings)
    return _build_openai(settings)


def _build_gemini(settings: Settings) -> BaseChatModel:
    from langchain_google_genai import ChatGoogleGenerativeAI

    if not settings.gemini_api_key:
        raise ValueError("GEMINI_API_KEY is not set")

    logger.info("Providers | building provider=gemini model=%s", settings.gemini_model)
    return ChatGoogleGenerativeAI(
        model=settings.gemini_model,
        google_api_key=settings.gemini_api_key,
        temperature=settings.llm_temperature,
        max_retries=0,     # retries are owned by ModelDriver
    )


def _build_openai(settings: Settings) -> BaseChatModel:
    from langchain_openai import ChatOpenAI

    if not settings.openai_api_key:
        raise ValueError("OPENAI_API_KEY is not set")

    logger.info("Providers | building provider=openai model=%s", settings.openai_model)
    return ChatOpenAI(
        model=settings.openai_model,
        api_key=settings.openai_api_key,
        temperature=settings.llm_temperature,
        max_retries=0,
    )


# ---------------------------------------------------------------------------
# ChatModelGenerator
# ---------------------------------------------------------------------------

def _content_text(content: Any) -> str:
    """Flatten a chat message payload (plain string or list of content parts)."""
    if isinstance(content, str):
        return content
    parts: list[str] = []
    for part in content or []:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type", "text") == "text":
            parts.append(str(part.get("text", "")))
    return "".join(parts)


class ChatModelGenerator(TextGenerator):
    """
    TextGenerator over a LangChain BaseChatModel.

    Each prompt is sent as a single HumanMessage; there is no system message
    and no conversation memory at this layer.
    """

    def __init__(self, model: BaseChatModel) -> None:
        self._model = model

    async def generate(self, prompt: str) -> str:
        try:
            result = await self._model.ainvoke([HumanMessage(content=prompt)])
        except Exception as exc:
            retryable = is_retryable(exc)
            status    = status_code_of(exc)
            logger.debug(
                "ChatModelGenerator | error=%s status=%s retryable=%s",
                type(exc).__name__, status, retryable,
            )
            raise ModelProviderError(
                f"{type(exc).__name__}: {exc}", retryable=retryable, status=status,
            ) from exc
        return _content_text(result.content)


def build_generator(settings: Settings | None = None) -> ChatModelGenerator:
    return ChatModelGenerator(build_chat_model(settings))
