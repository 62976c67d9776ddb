"""
Front Matter Module

Splits a content document into its metadata block and markdown body, and
serializes metadata back into a block for generated documents.

A block opens on the first line with ``---`` and closes on the next ``---``
line. Each line inside is ``key: value``; values may be double-quoted with
``\\"`` and ``\\\\`` escapes. Malformed lines are skipped, never fatal.
"""

import re
from dataclasses import dataclass, fields
from typing import Any, Dict, List, Mapping, Optional

from mdbuilder.logger import get_logger

logger = get_logger(__name__)

FRONT_MATTER_BOUNDARY = re.compile(r'^---\s*$')
TRUTHY_VALUES = {'true', 'yes', '1'}

# Front matter key -> FrontMatter attribute
FIELD_KEYS = {
    'title': 'title',
    'description': 'description',
    'sidebarTitle': 'sidebar_title',
    'sidebarSummary': 'sidebar_summary',
    'backLinkHref': 'back_link_href',
    'backLinkLabel': 'back_link_label',
    'slug': 'slug',
    'lang': 'lang',
    'translationOf': 'translation_of',
    'translate': 'translate',
    'noindex': 'noindex',
    'ogImage': 'og_image',
    'twitterImage': 'twitter_image',
}
BOOLEAN_KEYS = ('translate', 'noindex')

# Serialization order for generated documents
SERIALIZED_KEYS = (
    'title',
    'description',
    'sidebarTitle',
    'sidebarSummary',
    'backLinkHref',
    'backLinkLabel',
    'slug',
    'translationOf',
    'noindex',
    'ogImage',
    'twitterImage',
)

_ESCAPE_PATTERN = re.compile(r'\\(["\\])')


@dataclass(frozen=True)
class FrontMatter:
    """Sparse metadata record; None means "not set in this document"."""
    title: Optional[str] = None
    description: Optional[str] = None
    sidebar_title: Optional[str] = None
    sidebar_summary: Optional[str] = None
    back_link_href: Optional[str] = None
    back_link_label: Optional[str] = None
    slug: Optional[str] = None
    lang: Optional[str] = None
    translation_of: Optional[str] = None
    translate: Optional[bool] = None
    noindex: Optional[bool] = None
    og_image: Optional[str] = None
    twitter_image: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "FrontMatter":
        """Build from a front-matter-keyed mapping; unknown keys are ignored."""
        values = {}
        for key, value in data.items():
            attr = FIELD_KEYS.get(key)
            if attr is None or value is None:
                continue
            if key in BOOLEAN_KEYS:
                values[attr] = parse_bool(value)
            else:
                values[attr] = str(value)
        return cls(**values)

    def as_dict(self) -> Dict[str, Any]:
        """Return the fields that are set, keyed by front matter key."""
        attr_to_key = {attr: key for key, attr in FIELD_KEYS.items()}
        return {
            attr_to_key[f.name]: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }


@dataclass(frozen=True)
class ParsedDocument:
    """A content document split into metadata and body."""
    meta: FrontMatter
    body: str


def parse_bool(value: Any) -> bool:
    """
    Parse a tri-state flag value.

    Examples:
        >>> parse_bool('Yes')
        True
        >>> parse_bool('off')
        False
    """
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in TRUTHY_VALUES


def parse_meta_value(raw: str) -> str:
    """Unquote a double-quoted value; other values are returned as-is."""
    if len(raw) < 2 or not raw.startswith('"') or not raw.endswith('"'):
        return raw
    return _ESCAPE_PATTERN.sub(lambda m: m.group(1), raw[1:-1])


def parse_meta_lines(lines: List[str]) -> FrontMatter:
    values: Dict[str, Any] = {}
    for line in lines:
        key, sep, rest = line.partition(':')
        key = key.strip()
        if not sep or not key:
            continue
        if key not in FIELD_KEYS:
            logger.debug(f"Ignoring unknown front matter key: {key}")
            continue

        raw_value = rest.strip()
        if key in BOOLEAN_KEYS:
            values[key] = parse_bool(raw_value)
        else:
            values[key] = parse_meta_value(raw_value)

    return FrontMatter.from_mapping(values)


def parse_front_matter(raw: str) -> ParsedDocument:
    """
    Split a raw document into front matter and body.

    Args:
        raw: Full document text

    Returns:
        ParsedDocument. If there is no valid boundary pair the metadata is
        empty and the body is the whole (trimmed) document.
    """
    lines = re.split(r'\r?\n', raw)

    if lines and FRONT_MATTER_BOUNDARY.match(lines[0]):
        for index in range(1, len(lines)):
            if FRONT_MATTER_BOUNDARY.match(lines[index]):
                return ParsedDocument(
                    meta=parse_meta_lines(lines[1:index]),
                    body='\n'.join(lines[index + 1:]).strip(),
                )

    return ParsedDocument(meta=FrontMatter(), body=raw.strip())


def format_meta_value(value: Any) -> str:
    """Render a value for a front matter line, quoting when needed."""
    if isinstance(value, bool):
        return 'true' if value else 'false'

    text = ' '.join(str(value).splitlines())
    needs_quotes = ':' in text or '"' in text or text != text.strip()
    if not needs_quotes:
        return text
    escaped = text.replace('\\', '\\\\').replace('"', '\\"')
    return f'"{escaped}"'


def format_front_matter(meta: Mapping[str, Any]) -> str:
    """
    Serialize metadata into a front matter block.

    Only SERIALIZED_KEYS are written; ``lang`` and ``translate`` are left out
    because a generated document takes its language from its directory and is
    never a translation source itself.
    """
    lines = ['---']
    for key in SERIALIZED_KEYS:
        value = meta.get(key)
        if value is None:
            continue
        lines.append(f"{key}: {format_meta_value(value)}")
    lines.append('---')
    return '\n'.join(lines)
