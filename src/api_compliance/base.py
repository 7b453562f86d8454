"""Unified data models for declared API operations.

Decorators, the OpenAPI/Postman importers and the audit all exchange
these models, so naming rules see the same shapes no matter where an
operation was declared.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

BODY_METHODS = ("post", "put", "patch")


class ParameterDescriptor(BaseModel):
    """A single operation parameter (path, query or body)."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str
    location: Literal["path", "query", "body"] = Field(default="query", alias="in")
    type: str = "string"


class OperationDescriptor(BaseModel):
    """One HTTP endpoint: method, path template and its parameters."""

    model_config = ConfigDict(frozen=True)

    name: str = ""
    method: str  # get / post / put / delete / patch
    path: str  # /api/users/{id}
    summary: str | None = None
    parameters: list[ParameterDescriptor] = []

    @property
    def carries_body(self) -> bool:
        return self.method.lower() in BODY_METHODS

    def path_parameters(self) -> list[ParameterDescriptor]:
        return [p for p in self.parameters if p.location == "path"]


class ParsedParameter(BaseModel):
    """A formal parameter read out of a callable's source text."""

    raw_text: str
    name: str
    declared_type: str | None = None
    default: str | None = None
    is_rest: bool = False  # *options
    is_keywords: bool = False  # **kwargs

    @property
    def is_variadic(self) -> bool:
        return self.is_rest or self.is_keywords


class ClassifiedParameters(BaseModel):
    """Parsed parameters partitioned against a path's placeholder names."""

    path_params_in_signature: list[ParsedParameter] = []
    request_candidates: list[ParsedParameter] = []
    options_candidates: list[ParsedParameter] = []

    @property
    def non_options_count(self) -> int:
        return len(self.path_params_in_signature) + len(self.request_candidates)


class MethodMetadata(BaseModel):
    """Record stored for a decorated method once its declaration passed checks."""

    name: str
    method: str  # GET / POST / ...
    path: str
    options: dict[str, Any] | None = None

    @property
    def summary(self) -> str | None:
        return (self.options or {}).get("summary")

    @property
    def description(self) -> str | None:
        return (self.options or {}).get("description")

    def to_operation(self, parameters: list[ParameterDescriptor] | None = None) -> OperationDescriptor:
        return OperationDescriptor(
            name=self.name,
            method=self.method.lower(),
            path=self.path,
            summary=self.summary,
            parameters=parameters or [],
        )


class DecoratorOptions(BaseModel):
    """Keyword options accepted by the HTTP method decorators."""

    model_config = ConfigDict(extra="allow")

    summary: str | None = None
    description: str | None = None


class ValidationResult(BaseModel):
    """Uniform outcome of every rule check and audit."""

    is_valid: bool = True
    errors: list[str] = []
    suggestions: list[str] = []

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls()

    @classmethod
    def failed(cls, errors: list[str], suggestions: list[str] | None = None) -> "ValidationResult":
        return cls(is_valid=not errors, errors=errors, suggestions=suggestions or [])

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        errors = self.errors + other.errors
        return ValidationResult(
            is_valid=not errors,
            errors=errors,
            suggestions=self.suggestions + other.suggestions,
        )

    def prefixed(self, tag: str) -> "ValidationResult":
        """Return a copy with every message prefixed by ``[tag]``."""
        return ValidationResult(
            is_valid=self.is_valid,
            errors=[f"[{tag}] {e}" for e in self.errors],
            suggestions=[f"[{tag}] {s}" for s in self.suggestions],
        )
