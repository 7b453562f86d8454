"""Detect and load operation source documents (OpenAPI or Postman)."""

import json
from pathlib import Path

import yaml

from api_compliance.base import OperationDescriptor
from api_compliance.parser.postman import parse_postman
from api_compliance.parser.swagger import parse_openapi


def _classify(data: object) -> str:
    if not isinstance(data, dict):
        return "unknown"
    if "openapi" in data or "swagger" in data:
        return "swagger"
    if "_postman_id" in (data.get("info") or {}):
        return "postman"
    return "unknown"


def detect_format(file_path: Path) -> str:
    """Return 'swagger', 'postman' or 'unknown' for *file_path*."""
    text = file_path.read_text(encoding="utf-8")
    try:
        return _classify(yaml.safe_load(text))
    except yaml.YAMLError:
        pass
    # JSON with tabs or other constructs YAML rejects
    try:
        return _classify(json.loads(text))
    except ValueError:
        return "unknown"


def load_operations(file_path: Path, fmt: str = "auto") -> list[OperationDescriptor]:
    """Parse *file_path* into operations, detecting the format when asked to."""
    if fmt == "auto":
        fmt = detect_format(file_path)
    if fmt == "swagger":
        return parse_openapi(file_path)
    if fmt == "postman":
        return parse_postman(file_path)
    raise ValueError(f"Unsupported document format for {file_path}: expected OpenAPI or Postman")
