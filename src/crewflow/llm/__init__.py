"""Language-model client construction."""

from crewflow.llm.provider import create_llm, is_chat_client, resolve_llm, response_text

__all__ = ["create_llm", "is_chat_client", "resolve_llm", "response_text"]
