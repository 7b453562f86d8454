"""Naming rules shared by the decorators, the runtime checks and the audit.

Every canonical identifier (method name, request/response type name,
parameter signature) is derived here from an ``OperationDescriptor`` so
that declaration-time checks and audits can never disagree.
"""

import re
from enum import Enum
from typing import Any, Iterable, Sequence

from api_compliance.base import ClassifiedParameters, OperationDescriptor, ValidationResult
from api_compliance.config import Settings, get_settings
from api_compliance.uri import PLACEHOLDER_RE, is_api_option

HTTP_METHOD_PREFIXES = {
    "get": "get",
    "post": "create",
    "put": "update",
    "delete": "delete",
    "patch": "patch",
}

DEFAULT_STOP_WORDS = frozenset({"api"})
VERSION_RE = re.compile(r"^v\d+$", re.IGNORECASE)
_CASE_BOUNDARY_RE = re.compile(r"([a-z])([A-Z])")
_WORD_SEPARATOR_RE = re.compile(r"[-_\s]+")


class PathParamOrder(str, Enum):
    """Which order the ``By...`` suffix of a method name follows."""

    DECLARED = "declared"  # the operation's own parameter list, never re-sorted
    TEMPLATE = "template"  # placeholder order in the path template


def to_pascal_case(value: str) -> str:
    return value[:1].upper() + value[1:]


def to_camel_case(value: str) -> str:
    return value[:1].lower() + value[1:]


def split_segment_words(segment: str) -> list[str]:
    """Split one path segment into lower-case words.

    ``systemId`` -> ``["system", "id"]``, ``invite-usage`` -> ``["invite", "usage"]``.
    """
    spaced = _CASE_BOUNDARY_RE.sub(r"\1 \2", segment)
    return [w.lower() for w in _WORD_SEPARATOR_RE.split(spaced) if w]


def extract_path_placeholders(path: str) -> list[str]:
    return PLACEHOLDER_RE.findall(path)


class NamingRule:
    """OpenAPI naming convention for generated client classes."""

    def __init__(
        self,
        stop_words: Iterable[str] = DEFAULT_STOP_WORDS,
        path_param_order: PathParamOrder | str = PathParamOrder.DECLARED,
    ):
        self.stop_words = frozenset(w.lower() for w in stop_words)
        self.path_param_order = PathParamOrder(path_param_order)

    @classmethod
    def from_settings(cls, settings: Settings) -> "NamingRule":
        return cls(stop_words=settings.stop_words, path_param_order=settings.path_param_order)

    # Name derivation

    def method_prefix(self, http_method: str) -> str:
        method = http_method.lower()
        return HTTP_METHOD_PREFIXES.get(method, method)

    def resource_name(self, path: str) -> str:
        clean_path = PLACEHOLDER_RE.sub("", path)
        segments = [
            seg for seg in clean_path.split("/")
            if seg and seg.lower() not in self.stop_words and not VERSION_RE.match(seg)
        ]
        words = [w for seg in segments for w in split_segment_words(seg)]
        return "".join(to_pascal_case(w) for w in words)

    def path_param_names(self, operation: OperationDescriptor) -> list[str]:
        if self.path_param_order is PathParamOrder.TEMPLATE:
            return list(dict.fromkeys(extract_path_placeholders(operation.path)))
        return [p.name for p in operation.path_parameters()]

    def derive_method_name(self, operation: OperationDescriptor) -> str:
        name = self.method_prefix(operation.method) + self.resource_name(operation.path)
        path_params = self.path_param_names(operation)
        if path_params:
            name += "By" + "".join(to_pascal_case(p) for p in path_params)
        return to_camel_case(name)

    def derive_request_type_name(self, method_name: str) -> str:
        return f"{to_pascal_case(method_name)}Request"

    def derive_response_type_name(self, method_name: str) -> str:
        return f"{to_pascal_case(method_name)}Response"

    def extract_path_placeholders(self, path: str) -> list[str]:
        return extract_path_placeholders(path)

    def derive_parameter_signature(self, operation: OperationDescriptor) -> str:
        """Canonical parameter list for messages, e.g. ``(id: str, *options: APIOption) -> GetUsersByIdResponse``."""
        method_name = self.derive_method_name(operation)
        params = [f"{p}: str" for p in self.extract_path_placeholders(operation.path)]
        if operation.carries_body:
            params.append(f"request: {self.derive_request_type_name(method_name)}")
        params.append("*options: APIOption")
        return f"({', '.join(params)}) -> {self.derive_response_type_name(method_name)}"

    def describe_canonical_declaration(self, operation: OperationDescriptor, method_name: str | None = None) -> str:
        """The declaration a decorated method is expected to have."""
        method_name = method_name or self.derive_method_name(operation)
        request_type = self.derive_request_type_name(method_name)
        response_type = self.derive_response_type_name(method_name)
        return (
            f"@{operation.method.upper()}('{operation.path}')\n"
            f"def {method_name}(self, request: {request_type}, *options: APIOption) -> {response_type}: ..."
        )

    # Validation

    def validate_method_name(self, actual_name: str, operation: OperationDescriptor) -> ValidationResult:
        expected = self.derive_method_name(operation)
        if actual_name == expected:
            return ValidationResult.ok()
        return ValidationResult.failed(
            [f'Method name mismatch: expected "{expected}", got "{actual_name}"'],
            [
                f"Rename method to: {expected}",
                f"Check HTTP method and path: {operation.method.upper()} {operation.path}",
            ],
        )

    def validate_type_names(self, method_name: str, request_type: str, response_type: str) -> ValidationResult:
        expected_request = self.derive_request_type_name(method_name)
        expected_response = self.derive_response_type_name(method_name)
        errors = []
        suggestions = []

        if request_type != expected_request:
            errors.append(f'Request type mismatch: expected "{expected_request}", got "{request_type}"')
            suggestions.append(f"Rename request type to: {expected_request}")
        if response_type != expected_response:
            errors.append(f'Response type mismatch: expected "{expected_response}", got "{response_type}"')
            suggestions.append(f"Rename response type to: {expected_response}")

        return ValidationResult.failed(errors, suggestions)

    def validate_method_signature(
        self, method_name: str, operation: OperationDescriptor, actual_args: Sequence[Any]
    ) -> ValidationResult:
        path_params = self.extract_path_placeholders(operation.path)
        expected_min = len(path_params) + (1 if operation.carries_body else 0)
        non_option_args = [arg for arg in actual_args if not is_api_option(arg)]

        if len(non_option_args) >= expected_min:
            return ValidationResult.ok()
        return ValidationResult.failed(
            [
                f"Parameter count mismatch: expected at least {expected_min} arguments, "
                f"got {len(non_option_args)}"
            ],
            [
                f"Method signature should be: {method_name}{self.derive_parameter_signature(operation)}",
                f"Path parameters: {', '.join(path_params)}",
                f"Request body required: {'yes' if operation.carries_body else 'no'}",
            ],
        )

    def validate_declared_signature(
        self, operation: OperationDescriptor, classified: ClassifiedParameters
    ) -> ValidationResult:
        """Check a parsed method signature against the ``(request, *options)`` convention."""
        errors = []

        for param in classified.path_params_in_signature:
            errors.append(
                f"Path parameter '{param.name}' must not be a method parameter; "
                f"bind it at call time with with_params({{'{param.name}': ...}})"
            )

        requests = classified.request_candidates
        if len(requests) > 1:
            errors.append(
                f"Only one request parameter is allowed, found {len(requests)}: "
                + ", ".join(p.name for p in requests)
            )

        options = classified.options_candidates
        if len(options) > 1:
            errors.append(
                f"Only one variadic options parameter (*options) is allowed, found {len(options)}: "
                + ", ".join(p.raw_text for p in options)
            )

        if classified.non_options_count > 1:
            names = [p.name for p in classified.path_params_in_signature + requests]
            errors.append(
                "Method signature must only have a request parameter and *options, "
                f"found {len(names)} non-option parameters: {', '.join(names)}"
            )

        suggestions = []
        if errors:
            suggestions.append(self.describe_canonical_declaration(operation, operation.name or None))
        return ValidationResult.failed(errors, suggestions)


OPENAPI_NAMING_RULE = NamingRule()


def default_naming_rule() -> NamingRule:
    """Naming rule configured from the current settings."""
    return NamingRule.from_settings(get_settings())
