"""
Document patcher: applies one natural-language instruction to an existing
document as a fixed sequence of anchored text edits.

Step order: tag, folder, view type, add properties, remove properties,
sort, group, rename. Each step runs only when its trigger is present in the
instruction and is skipped (not failed) when its anchor is missing from the
document. There is no well-formedness check afterwards.
"""
from __future__ import annotations
import logging
import re
from typing import Callable, List, Optional, Sequence, Tuple

from .document import (
    escape_string,
    file_predicate,
    first_view,
    formula_names,
    display_names,
    quote_predicate,
    render_filters,
    render_group_by,
    render_sort,
    top_level_block,
    view_key,
    view_order,
)
from .extractor import (
    ADD_CUES,
    NOISE_WORDS,
    REMOVE_CUES,
    Entities,
    extract_entities,
    extract_property_list,
)
from .properties import resolve_property

logger = logging.getLogger(__name__)

Resolver = Callable[[str], str]

_ADD_CUE = re.compile(r"\b(?:%s)\b" % "|".join(ADD_CUES), re.I)
_REMOVE_CUE = re.compile(r"\b(?:%s)\b" % "|".join(REMOVE_CUES), re.I)
_CONJUNCTION = re.compile(r"^( *)(and|or):[ \t]*\n", re.M)


def document_resolver(text: str) -> Resolver:
    """
    Resolve names against the document first: a declared displayName or
    formula name wins over the fixed alias table.
    """
    displays = display_names(text)
    formulas = {name.lower(): name for name in formula_names(text)}

    def _resolve(name: str) -> str:
        key = " ".join(name.split()).lower()
        if key in displays:
            return displays[key]
        snake = key.replace(" ", "_")
        if snake in formulas:
            return f"formula.{formulas[snake]}"
        return resolve_property(name)

    return _resolve


def _insert(text: str, pos: int, block: str) -> str:
    """Insert newline-terminated lines at a line boundary."""
    if pos > 0 and text[pos - 1] != "\n":
        # Anchor is the last line of a document without a trailing newline.
        block = "\n" + block.rstrip("\n")
    return text[:pos] + block + text[pos:]


def _replace(text: str, start: int, end: int, block: str) -> str:
    if end == len(text) and not text.endswith("\n"):
        block = block.rstrip("\n")
    return text[:start] + block + text[end:]


# =============================================================================
# EDIT STEPS
# =============================================================================

def set_filter_predicate(text: str, func: str, value: str) -> str:
    """Replace the argument of the first file.<func>("...") filter, or insert one."""
    predicate = file_predicate(func, value)
    block = top_level_block(text, "filters")
    if not block:
        return render_filters([predicate]) + "\n\n" + text.lstrip("\n")

    pattern = re.compile(rf'file\.{func}\("((?:[^"\\]|\\.)*)"\)')
    existing = pattern.search(text, *block)
    if existing:
        arg = escape_string(value)
        line_start = text.rfind("\n", 0, existing.start()) + 1
        if text[line_start:existing.start()].lstrip(" -").startswith("'"):
            arg = arg.replace("'", "''")
        return text[:existing.start(1)] + arg + text[existing.end(1):]

    conj = _CONJUNCTION.search(text, *block)
    if not conj:
        logger.debug("No and/or list under filters; skipping %s", func)
        return text
    line = " " * (len(conj.group(1)) + 2) + "- " + quote_predicate(predicate) + "\n"
    return text[:conj.end()] + line + text[conj.end():]


def set_view_type(text: str, view_type: str) -> str:
    view = first_view(text)
    span = view_key(text, view, "type") if view else None
    if not span:
        logger.debug("No view type anchor; skipping view type")
        return text
    return text[:span.value_start] + view_type + text[span.value_end:]


def add_order_entries(text: str, refs: Sequence[str]) -> str:
    view = first_view(text)
    span = view_key(text, view, "order") if view else None
    if not span:
        logger.debug("No order anchor; skipping add")
        return text
    current = view_order(text)
    new = []
    for ref in refs:
        if ref in current or ref in new or ref.lower() in NOISE_WORDS:
            continue
        new.append(ref)
    if not new:
        return text
    pad = " " * (view.indent + 2)
    return _insert(text, span.end, "".join(f"{pad}- {ref}\n" for ref in new))


def remove_order_entries(text: str, refs: Sequence[str]) -> str:
    for ref in refs:
        view = first_view(text)
        span = view_key(text, view, "order") if view else None
        if not span:
            logger.debug("No order anchor; skipping remove")
            return text
        line = re.compile(rf"^ +- {re.escape(ref)}[ \t]*(?:\n|$)", re.M).search(
            text, span.value_end, span.end
        )
        if not line:
            continue
        start, end = line.start(), line.end()
        if end == len(text) and not text.endswith("\n"):
            start -= 1
        text = text[:start] + text[end:]
    return text


def _set_view_block(text: str, key: str, after: str, block_for: Callable[[int], str]) -> str:
    view = first_view(text)
    if not view:
        logger.debug("No views; skipping %s", key)
        return text
    block = block_for(view.indent)
    existing = view_key(text, view, key)
    if existing:
        return _replace(text, existing.start, existing.end, block)
    anchor = view_key(text, view, after)
    if not anchor:
        logger.debug("No %s anchor; skipping %s", after, key)
        return text
    return _insert(text, anchor.end, block)


def set_sort(text: str, prop: str, direction: str) -> str:
    return _set_view_block(text, "sort", "order", lambda indent: render_sort(prop, direction, indent))


def set_group_by(text: str, prop: str, direction: str = "ASC") -> str:
    return _set_view_block(
        text, "groupBy", "order", lambda indent: render_group_by(prop, direction, indent)
    )


def rename_view(text: str, name: str) -> str:
    view = first_view(text)
    if not view:
        return text
    quoted = '"' + name.replace('"', '\\"') + '"'
    span = view_key(text, view, "name")
    if span:
        return text[:span.value_start] + quoted + text[span.value_end:]
    type_span = view_key(text, view, "type")
    if not type_span:
        logger.debug("No view name or type anchor; skipping rename")
        return text
    return _insert(text, type_span.end, f"{' ' * view.indent}name: {quoted}\n")


# =============================================================================
# INSTRUCTION
# =============================================================================

def _names(instruction: str, cues: Sequence[str], resolve: Resolver) -> List[str]:
    names = extract_property_list(instruction, cues) or []
    return [resolve(n) for n in names]


def patch_document(
    document: str, instruction: str, entities: Optional[Entities] = None
) -> Tuple[str, List[str]]:
    """
    Apply the instruction's edits in fixed order.
    Returns the new text and the names of the steps that changed it.
    """
    resolve = document_resolver(document)
    if entities is None:
        entities = extract_entities(instruction, resolve=resolve)

    removing = bool(_REMOVE_CUE.search(instruction))
    adding = bool(_ADD_CUE.search(instruction)) and not removing

    steps: List[Tuple[str, Callable[[str], str]]] = []
    if entities.tag:
        steps.append(("tag", lambda t: set_filter_predicate(t, "hasTag", entities.tag)))
    if entities.folder:
        steps.append(("folder", lambda t: set_filter_predicate(t, "inFolder", entities.folder)))
    if entities.view_type:
        steps.append(("view_type", lambda t: set_view_type(t, entities.view_type)))
    if adding:
        refs = _names(instruction, ADD_CUES, resolve)
        steps.append(("add", lambda t: add_order_entries(t, refs)))
    if removing:
        refs = _names(instruction, REMOVE_CUES, resolve)
        steps.append(("remove", lambda t: remove_order_entries(t, refs)))
    if entities.sort:
        sort = entities.sort
        steps.append(("sort", lambda t: set_sort(t, sort.property, sort.direction)))
    if entities.group_by:
        steps.append(("group_by", lambda t: set_group_by(t, entities.group_by)))
    if entities.rename_to:
        steps.append(("rename", lambda t: rename_view(t, entities.rename_to)))

    applied: List[str] = []
    text = document
    for name, step in steps:
        updated = step(text)
        if updated != text:
            applied.append(name)
            text = updated
    return text, applied


def apply_instruction(document: str, instruction: str) -> str:
    """Return the document with the instruction's edits applied."""
    return patch_document(document, instruction)[0]


__all__ = [
    "apply_instruction",
    "patch_document",
    "document_resolver",
    "set_filter_predicate",
    "set_view_type",
    "add_order_entries",
    "remove_order_entries",
    "set_sort",
    "set_group_by",
    "rename_view",
]
