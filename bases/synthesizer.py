"""
Document synthesizer: builds a fresh base document from extracted entities
when no exemplar applies. Output is a pure function of the entities.
"""
from __future__ import annotations
from typing import List

from .document import file_predicate, render_filters, render_group_by, render_sort
from .extractor import Entities, extract_entities

DEFAULT_VIEW_NAME = "Results"
FALLBACK_PREDICATE = 'file.ext == "md"'

# name -> (expression, displayName)
DEFAULT_FORMULAS = (
    ("last_updated", "file.mtime.relative()", "Updated"),
    ("word_count", "(file.size / 5).round(0)", "~Words"),
)
DEFAULT_ORDER = ("file.name", "formula.word_count", "formula.last_updated")


def _predicates(entities: Entities) -> List[str]:
    predicates = []
    if entities.tag:
        predicates.append(file_predicate("hasTag", entities.tag))
    if entities.folder:
        predicates.append(file_predicate("inFolder", entities.folder))
    if not predicates:
        predicates.append(FALLBACK_PREDICATE)
    return predicates


def synthesize_document(entities: Entities) -> str:
    """Render a complete document with a single view."""
    sections = [render_filters(_predicates(entities))]

    if entities.properties:
        order = list(entities.properties)
    else:
        order = list(DEFAULT_ORDER)
        sections.append("\n".join(
            ["formulas:"] + [f"  {name}: '{expr}'" for name, expr, _ in DEFAULT_FORMULAS]
        ))
        props = ["properties:"]
        for name, _, display in DEFAULT_FORMULAS:
            props.append(f"  formula.{name}:")
            props.append(f'    displayName: "{display}"')
        sections.append("\n".join(props))

    view = [
        "views:",
        f"  - type: {entities.resolved_view_type}",
        f'    name: "{entities.rename_to or DEFAULT_VIEW_NAME}"',
        "    order:",
    ]
    view.extend(f"      - {prop}" for prop in order)
    body = "\n".join(view) + "\n"
    if entities.sort:
        body += render_sort(entities.sort.property, entities.sort.direction, indent=4)
    if entities.group_by:
        body += render_group_by(entities.group_by, "ASC", indent=4)
    sections.append(body.rstrip("\n"))

    return "\n\n".join(sections)


def synthesize(text: str) -> str:
    """Extract entities from free text and synthesize a document."""
    return synthesize_document(extract_entities(text))


__all__ = ["synthesize_document", "synthesize", "DEFAULT_ORDER", "FALLBACK_PREDICATE"]
