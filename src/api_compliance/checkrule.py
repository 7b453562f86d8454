"""Audit of a client class against the naming and signature conventions.

Unlike the decorators, ``check_compliance`` never raises: every finding is
collected into one ``ValidationResult`` so a whole client can be reported
at once.

Example:
    result = check_compliance(client, ComplianceOptions(module_context=models))
    if not result.is_valid:
        print("\\n".join(result.errors))
"""

import inspect
import logging
import types
import typing
from typing import Any, Callable, Mapping

from pydantic import BaseModel, ConfigDict

from api_compliance.base import MethodMetadata, ValidationResult
from api_compliance.decorators import check_declared_signature, operation_for
from api_compliance.registry import get_methods_metadata, get_root_uri, owner_class
from api_compliance.rules.fuzzy import find_related_type
from api_compliance.rules.naming import NamingRule, default_naming_rule

logger = logging.getLogger(__name__)


class ComplianceOptions(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    enable_naming_validation: bool = True
    enable_type_validation: bool = True
    enable_parameter_validation: bool = True
    enable_root_uri_check: bool = True
    require_documentation: bool = False
    module_context: Any = None  # module or mapping of name -> type


def namespace_of(context: Any) -> dict[str, type] | None:
    if context is None:
        return None
    items = context.items() if isinstance(context, Mapping) else vars(context).items()
    return {name: value for name, value in items if isinstance(value, type)}


def _type_name(annotation: Any) -> str | None:
    if annotation is None or annotation is inspect.Parameter.empty:
        return None
    if isinstance(annotation, str):
        names = [part.strip().strip("'\"") for part in annotation.split("|")]
        names = [name for name in names if name and name != "None"]
        return names[0] if len(names) == 1 else None
    if typing.get_origin(annotation) in (typing.Union, types.UnionType):
        names = [_type_name(arg) for arg in typing.get_args(annotation) if arg is not type(None)]
        return names[0] if len(names) == 1 else None
    return getattr(annotation, "__name__", None)


def declared_types(function: Callable[..., Any]) -> tuple[str | None, str | None]:
    """Names of the request parameter's annotation and of the return annotation."""
    try:
        hints = typing.get_type_hints(function)
    except (NameError, TypeError):
        hints = dict(getattr(function, "__annotations__", {}))

    try:
        params = list(inspect.signature(function).parameters.values())
    except (TypeError, ValueError):
        return None, _type_name(hints.get("return"))
    positional = [
        p for p in params
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD) and p.name not in ("self", "cls")
    ]
    request = _type_name(hints.get(positional[0].name)) if positional else None
    return request, _type_name(hints.get("return"))


def _method_function(cls: type, name: str) -> Callable[..., Any] | None:
    value = inspect.getattr_static(cls, name, None)
    value = getattr(value, "func", None) or getattr(value, "__func__", None) or value
    return value if callable(value) else None


def _check_types(
    rule: NamingRule,
    metadata: MethodMetadata,
    function: Callable[..., Any] | None,
    namespace: dict[str, type] | None,
) -> ValidationResult:
    name = metadata.name
    expected = {
        "Request": rule.derive_request_type_name(name),
        "Response": rule.derive_response_type_name(name),
    }
    actual_request, actual_response = declared_types(function) if function else (None, None)
    actual = {"Request": actual_request, "Response": actual_response}

    result = rule.validate_type_names(
        name,
        actual_request or expected["Request"],
        actual_response or expected["Response"],
    )
    errors = list(result.errors)
    suggestions = list(result.suggestions)

    resource = rule.resource_name(metadata.path)
    for kind, expected_name in expected.items():
        if actual[kind] is not None:
            continue
        if kind == "Request" and function is not None:
            continue
        if namespace is None:
            suggestions.append(f"Expected {kind.lower()} type: {expected_name}")
            continue
        if expected_name in namespace:
            continue
        found = find_related_type(expected_name, name, namespace, resource)
        if found:
            errors.append(f'{kind} type mismatch: expected "{expected_name}", found "{found}" in module context')
            suggestions.append(f"Rename {found} to: {expected_name}")
        else:
            suggestions.append(f"Expected {kind.lower()} type: {expected_name} (not found in module context)")

    return ValidationResult.failed(errors, suggestions)


def _check_parameters(rule: NamingRule, metadata: MethodMetadata, function: Callable[..., Any] | None) -> ValidationResult:
    operation = operation_for(metadata.method, metadata.path, metadata.name)
    suggestions = [f"Expected signature: {metadata.name}{rule.derive_parameter_signature(operation)}"]
    placeholders = rule.extract_path_placeholders(metadata.path)
    if placeholders:
        suggestions.append(f"Path parameters: {', '.join(placeholders)}")

    declared = check_declared_signature(rule, operation, function) if function else None
    if declared is None or declared.is_valid:
        return ValidationResult(suggestions=suggestions)
    return ValidationResult.failed(declared.errors, suggestions + declared.suggestions)


def _check_documentation(metadata: MethodMetadata, function: Callable[..., Any] | None) -> ValidationResult:
    if metadata.summary or metadata.description or (function is not None and inspect.getdoc(function)):
        return ValidationResult.ok()
    method = metadata.method.upper()
    return ValidationResult.failed(
        ["Missing documentation"],
        [
            f"Add summary or description to @{method} decorator",
            f"Example: @{method}('{metadata.path}', summary='Description here')",
        ],
    )


def _audit(client: Any, options: ComplianceOptions, rule: NamingRule) -> ValidationResult:
    cls = owner_class(client)
    methods = get_methods_metadata(cls)
    if not methods:
        return ValidationResult(
            suggestions=["No decorated methods found. Ensure methods use @GET, @POST, etc. decorators"]
        )

    result = ValidationResult.ok()
    if options.enable_root_uri_check and not get_root_uri(cls):
        result = result.merge(ValidationResult.failed(
            ["Missing @RootUri decorator on client class"],
            ["Add @RootUri decorator to the client class"],
        ))

    namespace = namespace_of(options.module_context)
    for metadata in methods:
        function = _method_function(cls, metadata.name)
        operation = operation_for(metadata.method, metadata.path, metadata.name, metadata.summary)
        checks = []
        if options.enable_naming_validation:
            checks.append(rule.validate_method_name(metadata.name, operation))
        if options.enable_type_validation:
            checks.append(_check_types(rule, metadata, function, namespace))
        if options.enable_parameter_validation:
            checks.append(_check_parameters(rule, metadata, function))
        if options.require_documentation:
            checks.append(_check_documentation(metadata, function))
        for check in checks:
            result = result.merge(check.prefixed(metadata.name))
    return result


def check_compliance(
    client: Any,
    options: ComplianceOptions | Mapping[str, Any] | None = None,
    rule: NamingRule | None = None,
) -> ValidationResult:
    """Audit every decorated method of *client* (an instance or a class)."""
    if options is None:
        options = ComplianceOptions()
    elif not isinstance(options, ComplianceOptions):
        options = ComplianceOptions(**options)
    try:
        return _audit(client, options, rule or default_naming_rule())
    except Exception as exc:
        logger.exception("Compliance audit of %r failed", client)
        return ValidationResult.failed(
            [f"check_compliance failed: {exc}"],
            ["Ensure the client extends APIClient and has decorated methods"],
        )
