"""OpenAPI / Swagger document importer.

Reads OpenAPI 3.x and Swagger 2.0 documents into OperationDescriptor models
so their canonical client names can be derived and audited.
"""

import logging
from pathlib import Path

import yaml

from api_compliance.base import OperationDescriptor, ParameterDescriptor
from api_compliance.rules.naming import default_naming_rule

logger = logging.getLogger(__name__)

HTTP_METHODS = ("get", "post", "put", "delete", "patch", "head", "options")
PARAMETER_LOCATIONS = ("path", "query", "body")


def parse_openapi(file_path: Path) -> list[OperationDescriptor]:
    """Parse an OpenAPI/Swagger file into a list of OperationDescriptor."""
    text = file_path.read_text(encoding="utf-8")
    doc = yaml.safe_load(text) or {}
    return parse_openapi_document(doc)


def parse_openapi_document(doc: dict) -> list[OperationDescriptor]:
    operations = []
    paths = doc.get("paths", {}) or {}
    rule = default_naming_rule()

    for path, methods in paths.items():
        shared = (methods or {}).get("parameters", []) or []
        for method, operation in (methods or {}).items():
            if method.lower() not in HTTP_METHODS or not isinstance(operation, dict):
                continue

            params = _parse_parameters(doc, shared, operation.get("parameters", []) or [])
            if "requestBody" in operation and not any(p.location == "body" for p in params):
                params.append(ParameterDescriptor(name="request", location="body", type="object"))

            op = OperationDescriptor(
                name=operation.get("operationId", ""),
                method=method.lower(),
                path=path,
                summary=operation.get("summary") or None,
                parameters=params,
            )
            if not op.name:
                op = op.model_copy(update={"name": rule.derive_method_name(op)})
            operations.append(op)

    return operations


def resolve_ref(doc: dict, ref: str) -> dict | None:
    """Follow a local ``#/...`` JSON pointer inside *doc*."""
    if not ref.startswith("#/"):
        logger.debug("Skipping non-local reference %s", ref)
        return None
    node = doc
    for token in ref[2:].split("/"):
        token = token.replace("~1", "/").replace("~0", "~")
        if not isinstance(node, dict) or token not in node:
            logger.debug("Unresolvable reference %s", ref)
            return None
        node = node[token]
    return node if isinstance(node, dict) else None


def _parse_parameters(doc: dict, shared: list[dict], own: list[dict]) -> list[ParameterDescriptor]:
    # operation-level entries replace path-level ones with the same (name, in)
    merged: dict[tuple[str, str], ParameterDescriptor] = {}
    for p in shared + own:
        if "$ref" in p:
            p = resolve_ref(doc, p["$ref"]) or {}
        if "name" not in p:
            continue
        location = p.get("in", "query")
        if location not in PARAMETER_LOCATIONS:
            # header and cookie parameters play no part in naming
            continue
        schema = p.get("schema", {}) or {}
        merged[(p["name"], location)] = ParameterDescriptor(
            name=p["name"],
            location=location,
            type=schema.get("type", p.get("type", "string")),
        )
    return list(merged.values())
