"""
Entity extraction for Base Studio.
Pulls independent fields (tag, folder, view type, property list, sort,
group, rename) out of a free-text instruction. Each field has its own pure
rule function; a rule that finds nothing returns None and never raises.
"""
from __future__ import annotations
import re
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from .properties import resolve_property

Resolver = Callable[[str], str]

VIEW_TYPES = ("table", "cards", "list", "map")

PROPERTY_CUES = ("show", "display", "add", "properties")
ADD_CUES = ("add", "show", "include", "also", "display", "want", "need")
REMOVE_CUES = ("remove", "hide", "delete", "drop", "without")

VIEW_TYPE_WORDS = frozenset({
    "table", "tables", "card", "cards", "list", "lists", "map", "maps",
    "view", "views", "gallery", "board",
})

NOISE_WORDS = frozenset({
    # articles
    "a", "an", "the",
    # auxiliary verbs
    "is", "are", "was", "were", "be", "been", "being", "do", "does", "did",
    "have", "has", "had", "can", "could", "should", "would", "will", "shall",
    "may", "might", "must",
    # connectives and fillers
    "and", "or", "but", "also", "too", "plus", "with", "without", "by", "of",
    "to", "in", "on", "for", "from", "as", "at", "then", "that", "which",
    "all", "each", "every", "me", "my", "i", "it", "its", "them", "their",
    "please", "only", "just", "some", "any", "more", "new", "well", "how",
    "column", "columns", "field", "fields", "property", "properties",
    "note", "notes", "file", "files", "ascending", "descending", "asc",
    "desc", "order",
    # instruction verbs
    "show", "display", "add", "include", "want", "need", "see", "remove",
    "hide", "delete", "drop", "us", "you",
}) | VIEW_TYPE_WORDS

_QUOTE_OPEN = "\"'“‘"
_QUOTE_CLOSE = "\"'”’"

# Words a tag phrase can name that are never tag names.
TAG_STOP_WORDS = frozenset({"filter", "filters"})

_TAG_LITERAL = re.compile(r"(?<![\w&#])#(\w[\w/-]*)")
_TAG_PHRASE = re.compile(
    r"\btag(?:ged)?\s+(?:(?:to|with|as)\s+)?(?:the\s+)?[\"']?(\w[\w/-]*)", re.I
)
_FOLDER_PHRASE = re.compile(
    r"\bfolder\s+(?:(?:named|called)\s+)?(?:\"([^\"]+)\"|'([^'\"]+)'|(\w[\w/-]*))", re.I
)
_IN_PHRASE = re.compile(
    r"\bin\s+(?:(?:the|my|a)\s+)?(?:\"([^\"]+)\"|'([^'\"]+)'|(\w[\w/-]*))", re.I
)
_VIEW_CUES = (
    ("cards", re.compile(r"\bcards?\b", re.I)),
    ("list", re.compile(r"\blist\b", re.I)),
    ("map", re.compile(r"\bmap\b", re.I)),
    ("table", re.compile(r"\btable\b", re.I)),
)
# Words that end a property name captured after "sort by" / "group by".
_NAME_STOP = (
    r"(?:asc|ascending|desc|descending|and|then|with|in|as|grouped|group|sorted|sort|"
    r"ordered|tagged|first|last|order|limit|from|where|please|but|named|called)"
)
_BY_NAME = rf"(\"[^\"]+\"|'[^']+'|[\w.\-]+(?:\s+(?!{_NAME_STOP}\b)[\w.\-]+)*)"
_SORT_PHRASE = re.compile(
    r"\b(?:sort|order)(?:ed)?\s+(?:(?:it|them|notes|results|everything)\s+)?by\s+"
    r"(?:the\s+)?" + _BY_NAME,
    re.I,
)
_GROUP_PHRASE = re.compile(
    r"\bgroup(?:ed)?\s+(?:(?:it|them|notes|results|everything)\s+)?by\s+"
    r"(?:the\s+)?" + _BY_NAME,
    re.I,
)
_DESC = re.compile(r"\bdesc(?:ending)?\b", re.I)
_RENAME_PHRASE = re.compile(
    r"\b(?:re)?(?:name|call|title)(?:d|ed)?\s+"
    r"(?:(?:it|this|the|view|base|table)\s+)*(?:(?:to|as)\s+)?"
    rf"[{_QUOTE_OPEN}]([^\"”’\n]+?)[{_QUOTE_CLOSE}]",
    re.I,
)
_QUOTED = re.compile(rf"(?<!\w)[{_QUOTE_OPEN}]([^\"”’\n]+?)[{_QUOTE_CLOSE}](?!\w)")

# Ends the phrase that lists property names.
_CLAUSE_BREAK = re.compile(
    r"[;!?\n]|[.:](?=\s|$)|\s-\s|,?\s*\b(?:sort(?:ed)?|order(?:ed)?\s+by|group(?:ed)?|"
    r"tagged|in|from|where|that|which|as|for|rename[d]?|named|call(?:ed)?|"
    r"limit(?:ed)?|then|but)\b",
    re.I,
)
_LIST_SPLIT = re.compile(r",|&|\+|\band\b", re.I)


@dataclass(frozen=True)
class SortSpec:
    property: str
    direction: str = "ASC"


@dataclass
class Entities:
    """Fields pulled from one instruction. None means unspecified."""
    tag: Optional[str] = None
    folder: Optional[str] = None
    view_type: Optional[str] = None
    properties: Optional[List[str]] = None
    sort: Optional[SortSpec] = None
    group_by: Optional[str] = None
    rename_to: Optional[str] = None

    @property
    def resolved_view_type(self) -> str:
        return self.view_type or "table"

    def is_empty(self) -> bool:
        return all(v is None for v in asdict(self).values())

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _first_group(match: re.Match) -> Optional[str]:
    return next((g for g in match.groups() if g), None)


def _unquote(value: str) -> str:
    return value.strip().strip(_QUOTE_OPEN + _QUOTE_CLOSE).strip()


def _dedupe(items: Iterable[str]) -> List[str]:
    seen: List[str] = []
    for item in items:
        if item not in seen:
            seen.append(item)
    return seen


def clean_name(raw: str) -> Optional[str]:
    """Trim quotes, punctuation and leading/trailing noise words from a name."""
    words = _unquote(raw).strip(" .,;:!?").split()
    while words and words[0].lower() in NOISE_WORDS:
        words.pop(0)
    while words and words[-1].lower() in NOISE_WORDS:
        words.pop()
    if not words:
        return None
    return " ".join(words)


def extract_tag(text: str) -> Optional[str]:
    match = _TAG_LITERAL.search(text)
    if match:
        return match.group(1)
    for match in _TAG_PHRASE.finditer(text):
        name = match.group(1)
        if name.lower() not in NOISE_WORDS and name.lower() not in TAG_STOP_WORDS:
            return name
    return None


def extract_folder(text: str) -> Optional[str]:
    for pattern in (_FOLDER_PHRASE, _IN_PHRASE):
        for match in pattern.finditer(text):
            name = _first_group(match)
            if not name:
                continue
            name = name.strip()
            if name.lower() in NOISE_WORDS or name.lower() == "folder":
                continue
            return name
    return None


def extract_view_type(text: str) -> Optional[str]:
    """Return the cued view type, or None when the text names none."""
    for view_type, pattern in _VIEW_CUES:
        if pattern.search(text):
            return view_type
    return None


def extract_property_list(
    text: str, cues: Sequence[str] = PROPERTY_CUES
) -> Optional[List[str]]:
    """
    Names following a cue word. Quoted names win; otherwise the phrase after
    the cue is split on commas / "and" and cleaned of noise words.
    """
    body = _RENAME_PHRASE.sub(" ", text)
    cue = re.compile(r"\b(?:%s)\b:?\s+(.*)" % "|".join(map(re.escape, cues)), re.I | re.S)
    match = cue.search(body)
    if not match:
        return None

    rest = match.group(1)
    quoted = _QUOTED.findall(rest)
    if quoted:
        names = quoted
    else:
        phrase = _CLAUSE_BREAK.split(rest, maxsplit=1)[0]
        names = _LIST_SPLIT.split(phrase)

    cleaned = [
        c for c in (clean_name(n) for n in names)
        if c and "#" not in c and c.lower() not in NOISE_WORDS
    ]
    return _dedupe(cleaned) or None


def _by_name(fragment: str) -> Optional[str]:
    fragment = fragment.strip()
    if fragment[:1] in _QUOTE_OPEN:
        return _unquote(fragment) or None
    return clean_name(fragment)


def _last_by_name(pattern: re.Pattern, text: str) -> Optional[str]:
    # Multiple phrases: the last one wins.
    found = None
    for match in pattern.finditer(text):
        name = _by_name(match.group(1))
        if name:
            found = name
    return found


def extract_sort(text: str) -> Optional[SortSpec]:
    name = _last_by_name(_SORT_PHRASE, text)
    if not name:
        return None
    direction = "DESC" if _DESC.search(text) else "ASC"
    return SortSpec(property=name, direction=direction)


def extract_group_by(text: str) -> Optional[str]:
    return _last_by_name(_GROUP_PHRASE, text)


def extract_rename(text: str) -> Optional[str]:
    match = _RENAME_PHRASE.search(text)
    if not match:
        return None
    return match.group(1).strip() or None


def extract_entities(text: str, resolve: Resolver = resolve_property) -> Entities:
    """Run every field rule over the text and resolve property names."""
    names = extract_property_list(text)
    sort = extract_sort(text)
    group = extract_group_by(text)
    return Entities(
        tag=extract_tag(text),
        folder=extract_folder(text),
        view_type=extract_view_type(text),
        properties=_dedupe(resolve(n) for n in names) if names else None,
        sort=SortSpec(resolve(sort.property), sort.direction) if sort else None,
        group_by=resolve(group) if group else None,
        rename_to=extract_rename(text),
    )


__all__ = [
    "Entities",
    "SortSpec",
    "extract_entities",
    "extract_tag",
    "extract_folder",
    "extract_view_type",
    "extract_property_list",
    "extract_sort",
    "extract_group_by",
    "extract_rename",
    "clean_name",
    "ADD_CUES",
    "REMOVE_CUES",
    "NOISE_WORDS",
    "VIEW_TYPES",
]
