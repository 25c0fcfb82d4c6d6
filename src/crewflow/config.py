"""Crewflow configuration - Pydantic-based with environment variable support."""

from __future__ import annotations

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()

DEFAULT_OBJECTIVE = (
    "Complete all assigned tasks and provide a comprehensive summary of the results."
)


class LLMConfig(BaseModel):
    provider: str = Field(default_factory=lambda: os.getenv("LLM_PROVIDER", "openai"))
    model: str = Field(default_factory=lambda: os.getenv("LLM_MODEL", "gpt-4o-mini"))
    temperature: float = 0.2
    max_tokens: int = 4096
    base_url: Optional[str] = Field(default_factory=lambda: os.getenv("LLM_BASE_URL"))
    api_key: Optional[str] = Field(default_factory=lambda: os.getenv("LLM_API_KEY"))


class CrewSettings(BaseModel):
    extra_iterations: int = 10  # hierarchical ceiling = task count + extra_iterations
    synthesize_summary: bool = True
    default_objective: str = DEFAULT_OBJECTIVE
    completed_summary_chars: int = 500


class CrewflowConfig(BaseModel):
    llm: LLMConfig = Field(default_factory=LLMConfig)
    crew: CrewSettings = Field(default_factory=CrewSettings)
    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    @classmethod
    def from_env(cls) -> CrewflowConfig:
        return cls()
