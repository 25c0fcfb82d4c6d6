"""LLM provider factory - supports Anthropic, OpenAI, Groq, Ollama."""

from __future__ import annotations

import logging
import os
from typing import Any, Optional

from pydantic import ValidationError

from crewflow.config import LLMConfig
from crewflow.errors import CrewConfigurationError

logger = logging.getLogger(__name__)

OLLAMA_URL = "http://localhost:11434"

_KEY_ENV = {
    "anthropic": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
    "groq": "GROQ_API_KEY",
}


def _is_ollama_available(base_url: str = OLLAMA_URL) -> bool:
    try:
        import urllib.request
        urllib.request.urlopen(f"{base_url}/api/tags", timeout=2)
        return True
    except Exception:
        return False


def _api_key(config: LLMConfig, provider: str) -> str:
    env_name = _KEY_ENV[provider]
    api_key = config.api_key or os.getenv(env_name)
    if not api_key:
        raise CrewConfigurationError(f"{env_name} not set")
    return api_key


def _anthropic(config: LLMConfig, api_key: str):
    from langchain_anthropic import ChatAnthropic
    return ChatAnthropic(
        model=config.model,
        api_key=api_key,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
    )


def _openai(config: LLMConfig, api_key: str):
    from langchain_openai import ChatOpenAI
    extra: dict[str, Any] = {"base_url": config.base_url} if config.base_url else {}
    return ChatOpenAI(
        model=config.model,
        api_key=api_key,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
        **extra,
    )


def _groq(config: LLMConfig, api_key: str):
    from langchain_groq import ChatGroq
    return ChatGroq(
        model=config.model,
        api_key=api_key,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
    )


_KEYED_BUILDERS = {"anthropic": _anthropic, "openai": _openai, "groq": _groq}


def _auto(config: LLMConfig):
    # Local Ollama first, then hosted providers in order
    if _is_ollama_available():
        return create_llm(config.model_copy(update={"provider": "ollama"}))
    if os.getenv("GROQ_API_KEY"):
        return create_llm(config.model_copy(
            update={"provider": "groq", "model": "llama-3.3-70b-versatile"},
        ))
    for provider in ("anthropic", "openai"):
        if os.getenv(_KEY_ENV[provider]):
            return create_llm(config.model_copy(update={"provider": provider}))
    raise CrewConfigurationError(
        "No LLM provider available. Set ANTHROPIC_API_KEY, GROQ_API_KEY, "
        "OPENAI_API_KEY, or run Ollama."
    )


def create_llm(config: LLMConfig):
    """Build a LangChain chat model for ``config.provider``.

    Missing API keys and unknown providers raise CrewConfigurationError
    before any provider package is imported.
    """
    provider = config.provider.lower()

    if provider in _KEYED_BUILDERS:
        api_key = _api_key(config, provider)
        logger.info(f"Using {provider}: {config.model}")
        return _KEYED_BUILDERS[provider](config, api_key)

    if provider == "ollama":
        base_url = config.base_url or OLLAMA_URL
        if not _is_ollama_available(base_url):
            raise ConnectionError(f"Ollama not available at {base_url}")
        from langchain_ollama import ChatOllama
        logger.info(f"Using ollama: {config.model}")
        return ChatOllama(model=config.model, base_url=base_url, temperature=config.temperature)

    if provider == "auto":
        return _auto(config)

    raise CrewConfigurationError(f"Unknown LLM provider: {provider}")


def is_chat_client(value: Any) -> bool:
    """True for anything that can be invoked like a LangChain chat model."""
    return callable(getattr(value, "invoke", None))


def resolve_llm(value: Any) -> Optional[Any]:
    """Turn a client, an LLMConfig or a provider dict into a chat client.

    ``None`` passes through. Any other shape is a configuration error.
    """
    if value is None:
        return None
    if is_chat_client(value):
        return value
    if isinstance(value, LLMConfig):
        return create_llm(value)
    if isinstance(value, dict):
        if "provider" not in value:
            raise CrewConfigurationError(
                "LLM configuration dict must name a 'provider'"
            )
        try:
            config = LLMConfig.model_validate(value)
        except ValidationError as e:
            raise CrewConfigurationError(f"Invalid LLM configuration: {e}") from e
        return create_llm(config)
    raise CrewConfigurationError(
        f"Unsupported LLM value of type {type(value).__name__}: expected a chat "
        "client, an LLMConfig or a provider configuration dict"
    )


def response_text(response: Any) -> str:
    """Flatten a chat model response into plain text."""
    content = getattr(response, "content", response)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)
    return "" if content is None else str(content)
