"""Output contracts - schemas a task's raw output is checked against."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, TypeAdapter, ValidationError

from crewflow.errors import CrewConfigurationError, JSONExtractionError
from crewflow.llm_json import extract_json


class ContractViolation(BaseModel):
    path: str
    message: str


@dataclass
class ContractResult:
    success: bool
    data: Any = None
    violations: list[ContractViolation] = field(default_factory=list)


@runtime_checkable
class OutputContract(Protocol):
    def safe_parse(self, value: Any) -> ContractResult:
        ...


class PydanticContract:
    """Validate output against a pydantic model or any type pydantic understands.

    Text output is tried as a JSON document, then as text embedding a JSON
    object, and finally validated as the raw string.
    """

    def __init__(self, schema: Any) -> None:
        self.schema = schema
        self._adapter = schema if isinstance(schema, TypeAdapter) else TypeAdapter(schema)

    def safe_parse(self, value: Any) -> ContractResult:
        if not isinstance(value, str):
            return self._validate(value)

        # Whole text as JSON first so list and scalar roots are accepted
        try:
            return ContractResult(success=True, data=self._adapter.validate_json(value))
        except ValidationError:
            pass

        try:
            candidate: Any = extract_json(value)
        except JSONExtractionError:
            candidate = value
        return self._validate(candidate)

    def _validate(self, candidate: Any) -> ContractResult:
        try:
            data = self._adapter.validate_python(candidate)
        except ValidationError as e:
            return ContractResult(success=False, violations=_violations(e))
        return ContractResult(success=True, data=data)


def _violations(error: ValidationError) -> list[ContractViolation]:
    return [
        ContractViolation(
            path=".".join(str(p) for p in err.get("loc", ())) or "(root)",
            message=err.get("msg", "invalid value"),
        )
        for err in error.errors()
    ]


def as_contract(schema: Any) -> Optional[OutputContract]:
    """Normalize a task's ``output_schema`` argument into a contract."""
    if schema is None:
        return None
    if isinstance(schema, OutputContract):
        return schema
    if isinstance(schema, TypeAdapter):
        return PydanticContract(schema)
    if isinstance(schema, type) and issubclass(schema, BaseModel):
        return PydanticContract(schema)
    raise CrewConfigurationError(
        f"Unsupported output schema {schema!r}: expected a pydantic model, "
        "a TypeAdapter or an object with safe_parse()"
    )


def format_violations(violations: list[ContractViolation]) -> str:
    return "; ".join(f"{v.path}: {v.message}" for v in violations)
