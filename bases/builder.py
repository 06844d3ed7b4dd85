"""
Structured builder for Base Studio.
Builds a document from explicit form fields (tags, folder, filter logic,
formulas, columns, limit, sort, group, summaries) instead of free text.
"""
from __future__ import annotations
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

from .document import file_predicate, render_filters, render_group_by, render_sort
from .extractor import VIEW_TYPES

DEFAULT_VIEW_NAME = "Results"
DEFAULT_PROPERTIES = ("file.name",)
FILTER_LOGIC = ("and", "or")
DIRECTIONS = ("ASC", "DESC")
SUMMARY_TYPES = (
    "Sum", "Average", "Min", "Max", "Median", "Range", "Stddev",
    "Earliest", "Latest", "Filled", "Empty", "Unique", "Checked", "Unchecked",
)

_FORMULA_NAME = re.compile(r"^\w+$")


class BuildError(ValueError):
    """Raised when a structured build request has an invalid field."""


@dataclass
class FormulaField:
    name: str
    expression: str


@dataclass
class SummaryField:
    property: str
    summary: str


@dataclass
class BuildSpec:
    """Explicit fields for one single-view document."""
    tags: List[str] = field(default_factory=list)
    folder: Optional[str] = None
    logic: str = "and"
    formulas: List[FormulaField] = field(default_factory=list)
    properties: List[str] = field(default_factory=lambda: list(DEFAULT_PROPERTIES))
    custom_properties: List[str] = field(default_factory=list)
    view_type: str = "table"
    view_name: Optional[str] = None
    limit: Optional[int] = None
    sort_by: Optional[str] = None
    sort_direction: Optional[str] = None
    group_by: Optional[str] = None
    group_direction: Optional[str] = None
    summaries: List[SummaryField] = field(default_factory=list)


def split_list(value: Union[str, Sequence[str], None]) -> List[str]:
    """Comma-separated text or a list of names, stripped, empties dropped."""
    if not value:
        return []
    items = value.split(",") if isinstance(value, str) else value
    return [item.strip() for item in items if item and item.strip()]


def display_name(formula_name: str) -> str:
    """word_count -> Word Count"""
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), formula_name.replace("_", " "))


def quote_formula(expression: str) -> str:
    if '"' in expression:
        return "'" + expression.replace("'", "''") + "'"
    return '"' + expression.replace("\\", "\\\\") + '"'


def _direction(value: Optional[str], what: str) -> Optional[str]:
    if not value:
        return None
    direction = value.strip().upper()
    if direction not in DIRECTIONS:
        raise BuildError(f"Invalid {what} direction '{value}'. Use ASC or DESC.")
    return direction


def _formulas(spec: BuildSpec) -> List[FormulaField]:
    formulas = []
    for formula in spec.formulas:
        name, expression = formula.name.strip(), formula.expression.strip()
        if not name or not expression:
            continue
        if not _FORMULA_NAME.match(name):
            raise BuildError(f"Invalid formula name '{name}'. Use letters, digits and underscores.")
        formulas.append(FormulaField(name, expression))
    return formulas


def _validate(spec: BuildSpec) -> None:
    if spec.logic not in FILTER_LOGIC:
        raise BuildError(f"Invalid filter logic '{spec.logic}'. Use 'and' or 'or'.")
    if spec.view_type not in VIEW_TYPES:
        raise BuildError(f"Invalid view type '{spec.view_type}'. Use one of: {', '.join(VIEW_TYPES)}.")
    if spec.limit is not None and spec.limit < 1:
        raise BuildError("Limit must be a positive number.")
    for summary in spec.summaries:
        if summary.summary not in SUMMARY_TYPES:
            raise BuildError(f"Unknown summary '{summary.summary}'.")


def build_document(spec: BuildSpec) -> str:
    """Render the fields as a document. Empty sections are omitted."""
    _validate(spec)
    sections = []

    predicates = [file_predicate("hasTag", tag.lstrip("#")) for tag in split_list(spec.tags)]
    folder = (spec.folder or "").strip()
    if folder:
        predicates.append(file_predicate("inFolder", folder))
    if predicates:
        sections.append(render_filters(predicates, spec.logic))

    formulas = _formulas(spec)
    if formulas:
        sections.append("\n".join(
            ["formulas:"] + [f"  {f.name}: {quote_formula(f.expression)}" for f in formulas]
        ))
        props = ["properties:"]
        for f in formulas:
            props.append(f"  formula.{f.name}:")
            props.append(f'    displayName: "{display_name(f.name)}"')
        sections.append("\n".join(props))

    order = split_list(spec.properties) + split_list(spec.custom_properties)
    order += [f"formula.{f.name}" for f in formulas]

    view_name = (spec.view_name or "").strip() or DEFAULT_VIEW_NAME
    view = [
        "views:",
        f"  - type: {spec.view_type}",
        '    name: "' + view_name.replace('"', '\\"') + '"',
    ]
    if spec.limit:
        view.append(f"    limit: {spec.limit}")
    if order:
        view.append("    order:")
        view.extend(f"      - {prop}" for prop in order)
    body = "\n".join(view) + "\n"

    sort_direction = _direction(spec.sort_direction, "sort")
    if spec.sort_by and sort_direction:
        body += render_sort(spec.sort_by.strip(), sort_direction, indent=4)
    group_direction = _direction(spec.group_direction, "group")
    if spec.group_by and group_direction:
        body += render_group_by(spec.group_by.strip(), group_direction, indent=4)

    summaries = [s for s in spec.summaries if s.property.strip()]
    if summaries:
        body += "    summaries:\n"
        body += "".join(f"      {s.property.strip()}: {s.summary}\n" for s in summaries)
    sections.append(body.rstrip("\n"))

    return "\n\n".join(sections)


__all__ = [
    "BuildError",
    "BuildSpec",
    "FormulaField",
    "SummaryField",
    "build_document",
    "display_name",
    "quote_formula",
    "split_list",
    "SUMMARY_TYPES",
]
