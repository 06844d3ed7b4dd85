"""
Text helpers for base documents.
Documents are kept as YAML-like text, never parsed into a tree. These helpers
locate anchored spans (top-level blocks, the first view, keys inside it),
render the small blocks the synthesizer and patcher write, and read back the
observable state used by callers and tests.
"""
from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

_NEXT_TOP_LEVEL = re.compile(r"^[A-Za-z_][\w-]*:", re.M)
_LINE = re.compile(r"^( *)(\S?)[^\n]*(?:\n|$)", re.M)
_LIST_ITEM = re.compile(r"^ +- (.*?)[ \t]*$", re.M)
_FENCE_OPEN = re.compile(r"^\s*```[\w-]*[ \t]*\n?")
_FENCE_CLOSE = re.compile(r"\n?```\s*$")


@dataclass(frozen=True)
class ViewSpan:
    start: int
    end: int
    indent: int  # indentation of the view's own keys


@dataclass(frozen=True)
class KeySpan:
    start: int        # start of the key line
    value_start: int  # inline value on the key line
    value_end: int
    end: int          # end of the key line plus its nested lines


# =============================================================================
# RENDERING
# =============================================================================

def escape_string(value: str) -> str:
    """Escape a value for use inside a double-quoted expression string."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


def file_predicate(func: str, value: str) -> str:
    return f'file.{func}("{escape_string(value)}")'


def quote_predicate(expr: str) -> str:
    """Single-quote a predicate that carries a double quote."""
    if '"' not in expr:
        return expr
    return "'" + expr.replace("'", "''") + "'"


def render_filters(predicates: Sequence[str], conjunction: str = "and") -> str:
    lines = ["filters:", f"  {conjunction}:"]
    lines.extend(f"    - {quote_predicate(p)}" for p in predicates)
    return "\n".join(lines)


def render_sort(prop: str, direction: str, indent: int) -> str:
    pad = " " * indent
    return (
        f"{pad}sort:\n"
        f"{pad}  - property: {prop}\n"
        f"{pad}    direction: {direction}\n"
    )


def render_group_by(prop: str, direction: str, indent: int) -> str:
    pad = " " * indent
    return (
        f"{pad}groupBy:\n"
        f"{pad}  property: {prop}\n"
        f"{pad}  direction: {direction}\n"
    )


def strip_markdown_fences(text: str) -> str:
    """Remove a wrapping ``` fence (with optional language tag)."""
    text = text.strip()
    if text.startswith("```"):
        text = _FENCE_OPEN.sub("", text, count=1)
        text = _FENCE_CLOSE.sub("", text, count=1)
    return text.strip()


# =============================================================================
# SPANS
# =============================================================================

def top_level_block(text: str, key: str) -> Optional[Tuple[int, int]]:
    """Span of a top-level key and everything indented under it."""
    match = re.search(rf"^{re.escape(key)}:[^\n]*\n?", text, re.M)
    if not match:
        return None
    nxt = _NEXT_TOP_LEVEL.search(text, match.end())
    return match.start(), nxt.start() if nxt else len(text)


def _children_end(text: str, pos: int, limit: int, indent: int) -> int:
    """Advance past lines indented deeper than `indent`."""
    while pos < limit:
        line = _LINE.match(text, pos)
        if not line or not line.group(2) or len(line.group(1)) <= indent:
            break
        if line.end() == pos:
            break
        pos = line.end()
    return min(pos, limit)


def first_view(text: str) -> Optional[ViewSpan]:
    block = top_level_block(text, "views")
    if not block:
        return None
    start, end = block
    item = re.compile(r"^( *)- ", re.M).search(text, start, end)
    if not item:
        return None
    item_indent = len(item.group(1))
    nxt = re.compile(rf"^ {{{item_indent}}}- ", re.M).search(text, item.end(), end)
    view_end = nxt.start() if nxt else end
    # Trailing blank lines belong to the gap, not the view.
    while text[item.start():view_end].endswith("\n\n"):
        view_end -= 1
    return ViewSpan(item.start(), view_end, item_indent + 2)


def view_key(text: str, view: ViewSpan, key: str) -> Optional[KeySpan]:
    """Locate `key:` among the first view's own keys."""
    pattern = re.compile(
        rf"^(?: {{{view.indent - 2}}}- | {{{view.indent}}}){re.escape(key)}:[ \t]*(?P<value>[^\n]*)",
        re.M,
    )
    match = pattern.search(text, view.start, view.end)
    if not match:
        return None
    line_end = match.end()
    children = line_end + 1 if text[line_end:line_end + 1] == "\n" else line_end
    end = _children_end(text, children, view.end, view.indent)
    return KeySpan(match.start(), match.start("value"), match.end("value"), end)


# =============================================================================
# INSPECTION
# =============================================================================

def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] == "'":
        return value[1:-1].replace("''", "'")
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return value[1:-1]
    return value


def filter_entries(text: str) -> List[str]:
    """Predicates listed in the top-level filters block, unquoted."""
    block = top_level_block(text, "filters")
    if not block:
        return []
    return [_unquote(m.group(1)) for m in _LIST_ITEM.finditer(text, *block)]


def _view_value(text: str, key: str) -> Optional[str]:
    view = first_view(text)
    span = view_key(text, view, key) if view else None
    if not span:
        return None
    return _unquote(text[span.value_start:span.value_end]) or None


def view_type(text: str) -> Optional[str]:
    return _view_value(text, "type")


def view_name(text: str) -> Optional[str]:
    return _view_value(text, "name")


def _view_children(text: str, key: str) -> Optional[str]:
    view = first_view(text)
    span = view_key(text, view, key) if view else None
    if not span:
        return None
    return text[span.value_end:span.end]


def view_order(text: str) -> List[str]:
    children = _view_children(text, "order")
    if not children:
        return []
    return [m.group(1) for m in _LIST_ITEM.finditer(children)]


def view_sort(text: str) -> List[Dict[str, str]]:
    children = _view_children(text, "sort")
    if not children:
        return []
    entries: List[Dict[str, str]] = []
    for line in children.splitlines():
        m = re.match(r"\s*(-\s+)?(property|direction):\s*(\S+)", line)
        if not m:
            continue
        if m.group(1) or not entries:
            entries.append({})
        entries[-1][m.group(2)] = m.group(3)
    return entries


def view_group_by(text: str) -> Optional[Dict[str, str]]:
    children = _view_children(text, "groupBy")
    if not children:
        return None
    return dict(re.findall(r"^\s*(property|direction):\s*(\S+)", children, re.M)) or None


def formula_names(text: str) -> List[str]:
    block = top_level_block(text, "formulas")
    if not block:
        return []
    return re.compile(r"^  (\w+):", re.M).findall(text, *block)


def display_names(text: str) -> Dict[str, str]:
    """Lower-cased displayName -> property reference."""
    block = top_level_block(text, "properties")
    if not block:
        return {}
    pairs = re.compile(r"^  (\S+):\s*\n\s+displayName:\s*(.*?)\s*$", re.M).findall(text, *block)
    return {_unquote(display).lower(): ref for ref, display in pairs if _unquote(display)}


__all__ = [
    "KeySpan",
    "ViewSpan",
    "escape_string",
    "file_predicate",
    "quote_predicate",
    "render_filters",
    "render_sort",
    "render_group_by",
    "strip_markdown_fences",
    "top_level_block",
    "first_view",
    "view_key",
    "filter_entries",
    "view_type",
    "view_name",
    "view_order",
    "view_sort",
    "view_group_by",
    "formula_names",
    "display_names",
]
