"""Postman Collection v2.1 importer.

Parses Postman exported JSON files into OperationDescriptor models.
Postman's ``:id`` path variables become ``{id}`` placeholders.
"""

import json
import re
from pathlib import Path

from api_compliance.base import OperationDescriptor, ParameterDescriptor

_VARIABLE_RE = re.compile(r"^:(\w+)$")
_TEMPLATE_VARIABLE_RE = re.compile(r"^\{\{.*\}\}$")


def parse_postman(file_path: Path) -> list[OperationDescriptor]:
    """Parse a Postman Collection v2.1 file into a list of OperationDescriptor."""
    text = file_path.read_text(encoding="utf-8")
    collection = json.loads(text)

    operations: list[OperationDescriptor] = []
    _parse_items(collection.get("item", []), operations)
    return operations


def _parse_items(items: list[dict], operations: list[OperationDescriptor]) -> None:
    """Recursively parse items (supports folders)."""
    for item in items:
        if "item" in item:
            _parse_items(item["item"], operations)
        elif "request" in item:
            operations.append(_parse_request(item))


def _parse_request(item: dict) -> OperationDescriptor:
    req = item["request"]
    url = req.get("url", {})
    if isinstance(url, str):
        url = {"path": url.split("?")[0].split("/")[1:]}

    segments = []
    params = []
    for segment in url.get("path", []):
        if _TEMPLATE_VARIABLE_RE.match(segment):
            continue
        match = _VARIABLE_RE.match(segment)
        if match:
            segments.append("{" + match.group(1) + "}")
            params.append(ParameterDescriptor(name=match.group(1), location="path"))
        else:
            segments.append(segment)

    params += _parse_query_params(url.get("query", []))
    if _has_body(req.get("body")):
        params.append(ParameterDescriptor(name="request", location="body", type="object"))

    return OperationDescriptor(
        method=req["method"].lower(),
        path="/" + "/".join(segments),
        summary=item.get("name") or None,
        parameters=params,
    )


def _parse_query_params(query: list[dict]) -> list[ParameterDescriptor]:
    return [ParameterDescriptor(name=q["key"], location="query") for q in query if not q.get("disabled")]


def _has_body(body: dict | None) -> bool:
    if not body:
        return False
    if body.get("mode") == "raw":
        try:
            return json.loads(body["raw"]) is not None
        except (json.JSONDecodeError, KeyError):
            return False
    return bool(body.get(body.get("mode", ""), None))
