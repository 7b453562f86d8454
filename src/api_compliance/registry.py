"""Per-class store of operation metadata and root URIs.

Records are written only while decorators are applied (normally at import
time) and read afterwards by clients and audits. Inheritance is resolved
explicitly along the MRO: the most specific class wins.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from api_compliance.base import MethodMetadata

logger = logging.getLogger(__name__)


@dataclass
class ClassRecord:
    methods: dict[str, MethodMetadata] = field(default_factory=dict)
    root_uri: str | None = None


def owner_class(obj: Any) -> type:
    return obj if isinstance(obj, type) else type(obj)


class MetadataRegistry:
    def __init__(self):
        self._records: dict[type, ClassRecord] = {}
        self._root_uris: dict[type, str] = {}

    def _record(self, cls: type) -> ClassRecord:
        return self._records.setdefault(cls, ClassRecord())

    def record_method(self, cls: type, metadata: MethodMetadata) -> None:
        """Store *metadata*; an existing record for the same name is replaced in place."""
        methods = self._record(cls).methods
        if metadata.name in methods:
            logger.debug("Replacing metadata for %s.%s", cls.__qualname__, metadata.name)
        methods[metadata.name] = metadata

    def record_root_uri(self, cls: type, uri: str) -> None:
        self._record(cls).root_uri = uri
        self._root_uris[cls] = uri

    def own_methods(self, cls: type) -> list[MethodMetadata]:
        record = self._records.get(cls)
        return list(record.methods.values()) if record else []

    def methods_for(self, cls: type) -> list[MethodMetadata]:
        """Metadata visible on *cls*: base classes first, subclasses override by name."""
        merged: dict[str, MethodMetadata] = {}
        for klass in reversed(cls.__mro__):
            record = self._records.get(klass)
            if record:
                merged.update(record.methods)
        return list(merged.values())

    def root_uri_for(self, cls: type) -> str | None:
        for klass in cls.__mro__:
            record = self._records.get(klass)
            if record and record.root_uri is not None:
                return record.root_uri
        return None

    def all_root_uris(self) -> dict[type, str]:
        """Root URIs keyed by the decorated class itself."""
        return dict(self._root_uris)

    def clear(self) -> None:
        self._records.clear()
        self._root_uris.clear()


REGISTRY = MetadataRegistry()


def get_methods_metadata(obj: Any) -> list[MethodMetadata]:
    return REGISTRY.methods_for(owner_class(obj))


def get_root_uri(obj: Any) -> str | None:
    return REGISTRY.root_uri_for(owner_class(obj))


def get_all_root_uris() -> dict[type, str]:
    return REGISTRY.all_root_uris()
