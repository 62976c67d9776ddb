"""
Slug, path and URL resolution.

Every URL the site publishes (canonical link, alternate links, sitemap
entries, language switcher) goes through ``normalize_output_url`` and
``to_absolute_url`` so that the same output path always yields the same URL.
"""

import re
from pathlib import PurePosixPath
from typing import Optional, Sequence
from urllib.parse import urljoin

from mdbuilder import language_codes as lc

SLUG_FALLBACK = 'page'
HTML_SUFFIX = '.html'

_NON_ALNUM = re.compile(r'[^a-z0-9]+')


def sanitize_slug_segment(value: str) -> str:
    """
    Sanitize one slug segment.

    Examples:
        >>> sanitize_slug_segment('  Rope Jam! ')
        'rope-jam'
        >>> sanitize_slug_segment('Règles du jeu')
        'r-gles-du-jeu'
        >>> sanitize_slug_segment('???')
        'page'
    """
    slug = _NON_ALNUM.sub('-', value.lower().strip()).strip('-')
    return slug or SLUG_FALLBACK


def sanitize_slug(value: str) -> str:
    """
    Sanitize a slug; a slug with ``/`` keeps its directory structure.

    Examples:
        >>> sanitize_slug('Guides/Advanced Tips')
        'guides/advanced-tips'
    """
    if '/' in value:
        segments = value.strip('/').split('/')
        return '/'.join(sanitize_slug_segment(segment) for segment in segments)
    return sanitize_slug_segment(value)


def slug_from_filename(relative_source: str) -> str:
    """File name without the markdown extension."""
    return PurePosixPath(relative_source).stem


def infer_lang_from_path(relative_source: str, supported_langs: Sequence[str]) -> Optional[str]:
    """Return the language of the first path segment, if it is a supported tag."""
    parts = PurePosixPath(relative_source).parts
    if len(parts) < 2:
        return None
    candidate = lc.normalize_language_tag(parts[0])
    return candidate if candidate in supported_langs else None


def resolve_lang(
    explicit_lang: Optional[str],
    relative_source: str,
    supported_langs: Sequence[str],
    default_lang: str,
) -> str:
    """
    Resolve a document's language.

    An explicit front matter ``lang`` wins; without one, the language directory
    the document lives in. An unsupported explicit ``lang`` resolves to the
    site default, not to the directory.
    """
    if explicit_lang:
        normalized = lc.normalize_language_tag(explicit_lang)
        return normalized if normalized in supported_langs else default_lang
    return infer_lang_from_path(relative_source, supported_langs) or default_lang


def resolve_output_path(relative_source: str, slug: str) -> str:
    """
    Derive the relative output path for a document.

    A slug containing ``/`` is used verbatim (it may move the page to another
    directory); otherwise the page stays in its source directory, language
    directory included.

    Examples:
        >>> resolve_output_path('house-rules/rope-jam.md', 'rope-jam')
        'house-rules/rope-jam.html'
        >>> resolve_output_path('fr/guide.md', 'guides/intro')
        'guides/intro.html'
    """
    if '/' in slug:
        return f"{slug.strip('/')}{HTML_SUFFIX}"
    parent = PurePosixPath(relative_source).parent
    return str(parent / f"{slug}{HTML_SUFFIX}") if str(parent) != '.' else f"{slug}{HTML_SUFFIX}"


def strip_html_extension(path: str) -> str:
    return re.sub(r'\.html?$', '', path, flags=re.IGNORECASE)


def normalize_index_url(path: str) -> str:
    """
    Collapse a trailing ``/index`` (or a bare ``index``) to its directory.

    Examples:
        >>> normalize_index_url('sub/index')
        'sub'
        >>> normalize_index_url('index')
        ''
    """
    normalized = re.sub(r'/index$', '', path)
    return '' if normalized == 'index' else normalized


def normalize_output_url(relative_output: str) -> str:
    """Site-relative URL path (no leading slash) for an output file."""
    return normalize_index_url(strip_html_extension(relative_output.lstrip('/')))


def to_absolute_url(relative_path: str, base_url: str) -> str:
    """
    Join a site-relative path onto the base URL's origin.

    Examples:
        >>> to_absolute_url('sub', 'https://example.com')
        'https://example.com/sub'
        >>> to_absolute_url('', 'https://example.com')
        'https://example.com/'
    """
    return urljoin(base_url, '/' + relative_path.lstrip('/'))


def output_url(relative_output: str, base_url: str) -> str:
    """Absolute published URL for an output file."""
    return to_absolute_url(normalize_output_url(relative_output), base_url)
