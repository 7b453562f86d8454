"""URI resolution for decorated API operations.

Call sites configure a request with small mutator functions (``APIOption``)
that can be passed in any order; ``resolve_uri`` then runs a fixed pipeline
so the final URI depends only on the collected configuration.
"""

import inspect
import re
from typing import Any, Callable, Mapping
from urllib.parse import quote

from pydantic import BaseModel

from api_compliance.errors import MissingPathParameterError

PLACEHOLDER_RE = re.compile(r"\{([^}]+)\}")

# Characters encodeURIComponent leaves alone besides the unreserved set.
_SAFE_CHARS = "!~*'()"


class APIConfig(BaseModel):
    """Everything needed to turn a path template into a request URI."""

    path: str
    headers: dict[str, str] = {}
    params: dict[str, str] = {}
    query: dict[str, Any] = {}
    root: str | None = None


APIOption = Callable[[APIConfig], None]


def with_root(root: str | None) -> APIOption:
    def apply(config: APIConfig) -> None:
        if root:
            config.root = root

    return apply


def with_path(path: str) -> APIOption:
    def apply(config: APIConfig) -> None:
        config.path = path

    return apply


def with_params(params: Mapping[str, Any]) -> APIOption:
    """Bind path placeholders, e.g. ``with_params({"id": "42"})``."""

    def apply(config: APIConfig) -> None:
        config.params = {**config.params, **{k: str(v) for k, v in params.items()}}

    return apply


def with_query(query: Mapping[str, Any]) -> APIOption:
    def apply(config: APIConfig) -> None:
        config.query = {**config.query, **query}

    return apply


def with_headers(headers: Mapping[str, str]) -> APIOption:
    def apply(config: APIConfig) -> None:
        config.headers = {**config.headers, **headers}

    return apply


def with_header(key: str, value: str) -> APIOption:
    def apply(config: APIConfig) -> None:
        config.headers = {**config.headers, key: value}

    return apply


def combine_options(*options: APIOption) -> APIOption:
    def apply(config: APIConfig) -> None:
        for option in options:
            option(config)

    return apply


def is_api_option(value: Any) -> bool:
    """True for callables that take exactly one positional argument."""
    if not callable(value) or isinstance(value, type):
        return False
    try:
        params = list(inspect.signature(value).parameters.values())
    except (TypeError, ValueError):
        return False
    positional = [
        p for p in params
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)
    ]
    required_others = [
        p for p in params
        if p.kind == p.KEYWORD_ONLY and p.default is p.empty
    ]
    return len(positional) == 1 and not required_others


def apply_options(config: APIConfig, options: tuple[APIOption, ...] | list[APIOption]) -> APIConfig:
    for option in options:
        option(config)
    return config


def encode_component(value: Any) -> str:
    return quote(str(value), safe=_SAFE_CHARS)


def _combine_root_and_path(root: str | None, path: str) -> str:
    if not root:
        return path
    clean_root = root.rstrip("/")
    clean_path = path if path.startswith("/") else "/" + path
    return clean_root + clean_path


def substitute_path_params(uri: str, params: Mapping[str, str]) -> str:
    for key, value in params.items():
        uri = uri.replace("{" + key + "}", encode_component(value))
    return uri


def _check_unresolved(uri: str) -> None:
    missing = PLACEHOLDER_RE.findall(uri)
    if missing:
        raise MissingPathParameterError(missing, uri)


def _append_query(uri: str, query: Mapping[str, Any]) -> str:
    query_string = "&".join(
        f"{encode_component(key)}={encode_component(value)}"
        for key, value in query.items()
        if value is not None and value != ""
    )
    if not query_string:
        return uri
    return uri + ("&" if "?" in uri else "?") + query_string


def resolve_uri(config: APIConfig) -> str:
    """Build the final URI: root + path, placeholders, validation, query."""
    uri = _combine_root_and_path(config.root, config.path)
    uri = substitute_path_params(uri, config.params)
    _check_unresolved(uri)
    return _append_query(uri, config.query)


def build_uri(path: str, *options: APIOption) -> str:
    return resolve_uri(apply_options(APIConfig(path=path), options))


def build_uri_from_path(path: str, root: str | None = None) -> str:
    return build_uri(path, with_root(root))
