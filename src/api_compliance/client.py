"""Base class for decorated API clients.

Transport is injected: ``send`` receives a ``PreparedRequest`` and returns
the decoded response payload. Request bodies and responses go through
pydantic when the types are pydantic models.
"""

import logging
from typing import Any, Callable, Mapping, TypeVar

from pydantic import BaseModel

from api_compliance.decorators import collect_pending_operations
from api_compliance.errors import TypeNamingError
from api_compliance.registry import get_root_uri
from api_compliance.uri import APIConfig, APIOption, apply_options, resolve_uri

logger = logging.getLogger(__name__)

REQUEST_SUFFIX = "Request"
RESPONSE_SUFFIX = "Response"

ResponseT = TypeVar("ResponseT")


class PreparedRequest(BaseModel):
    method: str
    uri: str
    headers: dict[str, str] = {}
    body: Any = None


def check_request_response_names(request: Any, response_type: Any) -> None:
    """Raise ``TypeNamingError`` unless the types follow ``XRequest`` / ``XResponse``."""
    if request is None or (isinstance(request, dict) and not request):
        return
    if not isinstance(response_type, type):
        return

    request_name = "" if isinstance(request, dict) else type(request).__name__
    response_name = response_type.__name__
    errors = []

    if request_name and not request_name.endswith(REQUEST_SUFFIX):
        errors.append(f'Request type "{request_name}" must end with "{REQUEST_SUFFIX}"')
    if not response_name.endswith(RESPONSE_SUFFIX):
        errors.append(f'Response type "{response_name}" must end with "{RESPONSE_SUFFIX}"')
    if request_name.endswith(REQUEST_SUFFIX) and response_name.endswith(RESPONSE_SUFFIX):
        request_prefix = request_name[: -len(REQUEST_SUFFIX)]
        response_prefix = response_name[: -len(RESPONSE_SUFFIX)]
        if request_prefix != response_prefix:
            errors.append(f'Request/Response prefix mismatch: "{request_prefix}" vs "{response_prefix}"')

    if errors:
        raise TypeNamingError(errors)


def _dump(request: Any) -> Any:
    if isinstance(request, BaseModel):
        return request.model_dump(mode="json", exclude_none=True)
    return request


class APIClient:
    """Base class for generated clients; subclasses declare operations with ``@GET`` etc."""

    default_headers: Mapping[str, str] = {"Content-Type": "application/json"}

    def __init__(self, send: Callable[[PreparedRequest], Any] | None = None):
        self.send = send

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        collect_pending_operations(cls)

    @property
    def root_uri(self) -> str | None:
        return get_root_uri(self)

    def prepare_request(
        self,
        method: str,
        path: str,
        request: Any,
        response_type: type | None,
        *options: APIOption,
    ) -> PreparedRequest:
        check_request_response_names(request, response_type)
        config = APIConfig(path=path, headers=dict(self.default_headers), root=self.root_uri)
        apply_options(config, options)
        return PreparedRequest(
            method=method.upper(),
            uri=resolve_uri(config),
            headers=config.headers,
            body=_dump(request) if request is not None else None,
        )

    def execute_request(
        self,
        method: str,
        path: str,
        request: Any,
        response_type: type[ResponseT],
        *options: APIOption,
    ) -> ResponseT:
        prepared = self.prepare_request(method, path, request, response_type, *options)
        if self.send is None:
            raise RuntimeError(f"{type(self).__name__} has no transport; pass send= to the constructor")

        logger.debug("%s %s", prepared.method, prepared.uri)
        payload = self.send(prepared)
        if payload is None or payload == "":
            raise ValueError("Response is empty")
        if issubclass(response_type, BaseModel):
            return response_type.model_validate(payload)
        return response_type(**payload)
