"""HTTP method and root URI decorators for API client classes.

The decorators understand three ways of being invoked and normalize all of
them into one ``InvocationRecord`` before anything else happens:

- plain Python: ``@GET("/users/{id}")`` over a ``def`` in a class body;
- positional: ``GET(path)(target, "method_name", descriptor)``, where the
  descriptor is the function, a mapping with ``"value"`` or an object with
  a ``.value`` attribute;
- context object: ``GET(path)(target, context)``, where ``context`` carries
  ``kind`` (``"method"``, ``"field"`` or ``"class"``) and ``name``.

Example:
    @RootUri("/api/v1")
    class UserClient(APIClient):
        @GET("/users/{id}", summary="Fetch one user")
        def getUsersById(self, request: GetUsersByIdRequest, *options: APIOption) -> GetUsersByIdResponse:
            return self.execute_request("GET", "/users/{id}", request, GetUsersByIdResponse, *options)

Malformed paths and signatures raise at decoration time so a broken
declaration never registers; with validation switched off decoration always
succeeds and the metadata is still recorded.
"""

import functools
import inspect
import logging
import types
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Literal, Mapping

from api_compliance.base import (
    DecoratorOptions,
    MethodMetadata,
    OperationDescriptor,
    ParameterDescriptor,
    ValidationResult,
)
from api_compliance.config import ValidationMode, resolve_mode
from api_compliance.errors import PathFormatError, SignatureViolationError
from api_compliance.parser.signature import classify_parameters, inspect_callable
from api_compliance.registry import REGISTRY
from api_compliance.rules.naming import NamingRule, default_naming_rule, extract_path_placeholders
from api_compliance.rules.paths import check_path, suggest_path
from api_compliance.uri import APIConfig, apply_options, is_api_option, substitute_path_params

logger = logging.getLogger(__name__)

PENDING_ATTR = "__api_operation__"


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


@dataclass(frozen=True)
class DecoratorContext:
    """Context object for the descriptor-object invocation protocol."""

    kind: Literal["method", "field", "class"]
    name: str
    owner: type | None = None
    static: bool = False
    private: bool = False


@dataclass(frozen=True)
class InvocationRecord:
    """One decorator application, independent of the protocol that delivered it."""

    kind: Literal["legacy", "modern", "plain"]
    target: Any
    method_name: str | None
    function: Callable[..., Any] | None
    owner: type | None = None


def _unwrap(value: Any) -> Callable[..., Any] | None:
    if isinstance(value, OperationBinding):
        return value.func
    if isinstance(value, (staticmethod, classmethod)):
        return value.__func__
    if callable(value) and not isinstance(value, type):
        return value
    return None


def _function_from_descriptor(descriptor: Any) -> Callable[..., Any] | None:
    if descriptor is None:
        return None
    if isinstance(descriptor, Mapping):
        return _unwrap(descriptor.get("value"))
    if hasattr(descriptor, "value"):
        return _unwrap(descriptor.value)
    return _unwrap(descriptor)


def _lookup(target: Any, name: str | None) -> Callable[..., Any] | None:
    if target is None or not name:
        return None
    cls = target if isinstance(target, type) else type(target)
    for klass in cls.__mro__:
        if name in vars(klass):
            return _unwrap(vars(klass)[name])
    return None


def _context_field(context: Any, key: str) -> Any:
    if isinstance(context, Mapping):
        return context.get(key)
    return getattr(context, key, None)


def _owner_of(target: Any) -> type | None:
    if target is None or inspect.isfunction(target) or inspect.ismethod(target):
        return None
    return target if isinstance(target, type) else type(target)


def normalize_invocation(args: tuple[Any, ...]) -> InvocationRecord:
    """Detect the invocation protocol from the raw decorator arguments."""
    target = args[0] if args else None
    second = args[1] if len(args) > 1 else None

    if isinstance(second, str):
        descriptor = args[2] if len(args) > 2 else None
        function = _function_from_descriptor(descriptor) or _lookup(target, second)
        return InvocationRecord("legacy", target, second, function, _owner_of(target))

    if second is not None and _context_field(second, "kind") is not None:
        name = _context_field(second, "name")
        name = str(name) if name is not None else None
        if inspect.isfunction(target) or inspect.ismethod(target):
            function = target
        else:
            function = _lookup(target, name)
        owner = _context_field(second, "owner") or _owner_of(target)
        return InvocationRecord("modern", target, name, function, owner)

    if len(args) == 1 and callable(target) and not isinstance(target, type):
        function = _unwrap(target)
        return InvocationRecord("plain", target, getattr(function, "__name__", None), function)

    # Atypical runtimes: read the arguments positionally.
    name = str(second) if second is not None else None
    descriptor = args[2] if len(args) > 2 else None
    function = _function_from_descriptor(descriptor) or _lookup(target, name)
    return InvocationRecord("legacy", target, name, function, _owner_of(target))


def ensure_valid_path(path: object, label: str = "path") -> None:
    result = check_path(path)
    if result.is_valid:
        return
    suggestion = suggest_path(path) if isinstance(path, str) else None
    reasons = result.errors + [f"A valid {label} starts with '/', e.g. '/users/{{id}}'; '/' alone is the root"]
    raise PathFormatError(path, reasons, suggestion)


def operation_for(http_method: str, path: str, method_name: str, summary: str | None = None) -> OperationDescriptor:
    """Operation as seen by the naming rules: one path parameter per distinct placeholder."""
    placeholders = dict.fromkeys(extract_path_placeholders(path))
    return OperationDescriptor(
        name=method_name,
        method=http_method.lower(),
        path=path,
        summary=summary,
        parameters=[ParameterDescriptor(name=p, location="path") for p in placeholders],
    )


def check_declared_signature(
    rule: NamingRule, operation: OperationDescriptor, function: Callable[..., Any]
) -> ValidationResult | None:
    """Signature rule result for *function*, or None when its source is not retrievable."""
    params = inspect_callable(function)
    if params is None:
        return None
    placeholders = extract_path_placeholders(operation.path)
    return rule.validate_declared_signature(operation, classify_parameters(params, placeholders))


def validate_signature(
    rule: NamingRule, http_method: str, path: str, method_name: str, function: Callable[..., Any] | None
) -> None:
    """Raise ``SignatureViolationError`` if *function* breaks the ``(request, *options)`` convention."""
    if function is None:
        logger.info("Signature check for %s deferred: function not available yet", method_name)
        return
    operation = operation_for(http_method, path, method_name)
    result = check_declared_signature(rule, operation, function)
    if result is None:
        logger.info("Signature check for %s skipped: source not retrievable", method_name)
        return
    if result.is_valid:
        return

    placeholders = extract_path_placeholders(path)
    hint = None
    if placeholders:
        hint = (
            f"Path parameters ({', '.join(placeholders)}) are bound at call time with "
            f"with_params({{{', '.join(repr(p) + ': ...' for p in placeholders)}}}), "
            "not passed as positional arguments"
        )
    raise SignatureViolationError(
        method_name, result.errors, rule.describe_canonical_declaration(operation, method_name), hint
    )


def register_method(owner: type | None, function: Callable[..., Any] | None, metadata: MethodMetadata) -> None:
    if owner is not None:
        REGISTRY.record_method(owner, metadata)
        logger.debug("Registered %s %s as %s.%s", metadata.method, metadata.path, owner.__qualname__, metadata.name)
    elif function is not None:
        # Owner unknown yet; picked up by collect_pending_operations().
        setattr(function, PENDING_ATTR, metadata)
    else:
        logger.info("Could not register %s: neither owner class nor function available", metadata.name)


def collect_pending_operations(cls: type) -> None:
    """Register metadata left on functions whose owner class was unknown when decorated."""
    for name, value in vars(cls).items():
        function = _unwrap(value)
        metadata = getattr(function, PENDING_ATTR, None) if function is not None else None
        if isinstance(metadata, MethodMetadata):
            if metadata.name != name:
                metadata = metadata.model_copy(update={"name": name})
            REGISTRY.record_method(cls, metadata)


class OperationBinding:
    """Class attribute produced by the plain ``@GET(...)`` form.

    Registers its metadata once the owner class is known and, in strict
    mode, checks call arguments before delegating to the wrapped function.
    """

    def __init__(self, func: Callable[..., Any], metadata: MethodMetadata, mode: ValidationMode, rule: NamingRule):
        functools.update_wrapper(self, func)
        self.func = func
        self.metadata = metadata
        self.mode = mode
        self.rule = rule

    def __set_name__(self, owner: type, name: str) -> None:
        if name != self.metadata.name:
            self.metadata = self.metadata.model_copy(update={"name": name})
        register_method(owner, self.func, self.metadata)

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            return self
        return types.MethodType(self, instance)

    def __call__(self, instance: Any, *args: Any, **kwargs: Any) -> Any:
        if self.mode is ValidationMode.STRICT:
            self.check_call(list(args) + list(kwargs.values()))
        return self.func(instance, *args, **kwargs)

    @property
    def operation(self) -> OperationDescriptor:
        return operation_for(self.metadata.method, self.metadata.path, self.metadata.name, self.metadata.summary)

    def check_call(self, values: list[Any]) -> None:
        """Count call arguments; placeholders bound via ``with_params`` count as supplied."""
        operation = self.operation
        options = [v for v in values if is_api_option(v)]
        bound = apply_options(APIConfig(path=operation.path), options).params
        remaining = operation.model_copy(update={"path": substitute_path_params(operation.path, bound)})

        result = self.rule.validate_method_signature(self.metadata.name, remaining, values)
        if not result.is_valid:
            raise SignatureViolationError(
                self.metadata.name,
                result.errors,
                self.rule.describe_canonical_declaration(operation, self.metadata.name),
                "; ".join(result.suggestions[1:]),
            )

    def __repr__(self) -> str:
        return f"<OperationBinding {self.metadata.method} {self.metadata.path} -> {self.metadata.name}>"


def _http_method_decorator(http_method: HttpMethod) -> Callable[..., Callable[..., Any]]:
    def factory(
        path: str,
        options: DecoratorOptions | Mapping[str, Any] | None = None,
        *,
        mode: ValidationMode | str | bool | None = None,
        rule: NamingRule | None = None,
        **extra: Any,
    ) -> Callable[..., Any]:
        resolved = resolve_mode(mode)
        naming_rule = rule or default_naming_rule()
        if resolved is ValidationMode.STRICT:
            ensure_valid_path(path)

        if isinstance(options, DecoratorOptions):
            options = options.model_dump(exclude_none=True)
        merged = {**(options or {}), **extra}
        decorator_options = DecoratorOptions(**merged).model_dump(exclude_none=True) if merged else None

        def decorator(*args: Any) -> Any:
            record = normalize_invocation(args)
            if not record.method_name:
                raise TypeError(f"@{http_method.value} could not determine the decorated method name")

            if resolved is ValidationMode.STRICT:
                validate_signature(naming_rule, http_method.value, path, record.method_name, record.function)

            metadata = MethodMetadata(
                name=record.method_name, method=http_method.value, path=path, options=decorator_options
            )
            if record.kind == "plain":
                return OperationBinding(record.function, metadata, resolved, naming_rule)
            register_method(record.owner, record.function, metadata)
            return None

        return decorator

    factory.__name__ = http_method.value
    factory.__qualname__ = http_method.value
    return factory


GET = _http_method_decorator(HttpMethod.GET)
POST = _http_method_decorator(HttpMethod.POST)
PUT = _http_method_decorator(HttpMethod.PUT)
DELETE = _http_method_decorator(HttpMethod.DELETE)
PATCH = _http_method_decorator(HttpMethod.PATCH)
HEAD = _http_method_decorator(HttpMethod.HEAD)
OPTIONS = _http_method_decorator(HttpMethod.OPTIONS)


def RootUri(uri: str, *, mode: ValidationMode | str | bool | None = None) -> Callable[..., Any]:
    """Class decorator setting the root URI every operation path is resolved against."""
    if resolve_mode(mode) is ValidationMode.STRICT:
        ensure_valid_path(uri, label="root URI")

    def decorator(*args: Any) -> Any:
        target = args[0] if args else None
        context = args[1] if len(args) > 1 else None
        cls = target if isinstance(target, type) else _context_field(context, "owner")
        if not isinstance(cls, type):
            raise TypeError("@RootUri can only decorate a class")

        REGISTRY.record_root_uri(cls, uri)
        collect_pending_operations(cls)
        logger.debug("Root URI of %s set to %s", cls.__qualname__, uri)
        if context is not None and _context_field(context, "kind") is not None:
            return None
        return cls

    return decorator
