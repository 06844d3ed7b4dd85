"""
Property name resolver for Base Studio.
Maps common natural-language names to file-builtin property references.
Anything not in the table is assumed to be a vault-defined property.
"""
from __future__ import annotations
from typing import Dict

PROPERTY_ALIASES: Dict[str, str] = {
    "name": "file.name",
    "file name": "file.name",
    "filename": "file.name",
    "size": "file.size",
    "file size": "file.size",
    "folder": "file.folder",
    "created": "file.ctime",
    "modified": "file.mtime",
    "tags": "file.tags",
    "links": "file.links",
    "extension": "file.ext",
    "ext": "file.ext",
}

# Canonical references resolve to themselves, case-insensitively.
for _ref in set(PROPERTY_ALIASES.values()):
    PROPERTY_ALIASES.setdefault(_ref, _ref)


def resolve_property(name: str) -> str:
    """Return the canonical reference for a property name."""
    cleaned = " ".join(name.split())
    return PROPERTY_ALIASES.get(cleaned.lower(), cleaned)


__all__ = ["resolve_property", "PROPERTY_ALIASES"]
