"""
Translation Processing Module

Contains the per-document translation steps:
- Link placeholder replacement and restoration (hrefs never reach the service)
- Slug translation
- Metadata field and body translation
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from mdbuilder.core.paths import sanitize_slug
from mdbuilder.logger import get_logger
from mdbuilder.translator.exceptions import TranslationError

logger = get_logger(__name__)

LINK_PATTERN = re.compile(r'\[([^\[\]]+?)\]\(([^)]+?)\)')
PLACEHOLDER_TEMPLATE = "__LINK_{index}__"
PLACEHOLDER_PATTERN = re.compile(r'__LINK_\d+__')

# Metadata fields whose values are translated, in translation order
TRANSLATED_META_FIELDS = (
    'title',
    'description',
    'sidebarTitle',
    'sidebarSummary',
    'backLinkLabel',
)


@dataclass(frozen=True)
class ProtectedLink:
    """A markdown link lifted out of the text before translation."""
    placeholder: str
    text: str
    href: str


def replace_links_with_placeholders(body: str) -> Tuple[str, List[ProtectedLink]]:
    """
    Replace every markdown link with a numbered placeholder.

    Nested links (a badge image inside a link) are lifted innermost first; the
    outer link's text then holds the inner placeholder.

    Example:
        >>> text, links = replace_links_with_placeholders("See [the rules](/rules).")
        >>> text
        'See __LINK_0__.'
        >>> links[0].href
        '/rules'
        >>> text, links = replace_links_with_placeholders("[![Logo](/logo.png)](https://x/y)")
        >>> text, links[1].text
        ('__LINK_1__', '!__LINK_0__')
    """
    links: List[ProtectedLink] = []

    def replace(match: re.Match) -> str:
        placeholder = PLACEHOLDER_TEMPLATE.format(index=len(links))
        links.append(ProtectedLink(placeholder=placeholder, text=match.group(1), href=match.group(2)))
        return placeholder

    protected_text = body
    while True:
        protected_text, count = LINK_PATTERN.subn(replace, protected_text)
        if not count:
            break

    if links:
        logger.debug(f"Replaced {len(links)} links with placeholders")
    return protected_text, links


def restore_links_from_placeholders(text: str, links: List[ProtectedLink]) -> str:
    """
    Put links back in place of their placeholders, outermost first.

    Raises:
        TranslationError: If a placeholder did not survive translation.
    """
    restored_text = text
    missing: List[str] = []
    for link in reversed(links):
        if link.placeholder not in restored_text:
            missing.append(link.placeholder)
            continue
        restored_text = restored_text.replace(link.placeholder, f"[{link.text}]({link.href})")

    if missing:
        missing.reverse()
        raise TranslationError(
            f"Translation lost link placeholders: {', '.join(missing)}",
            code="placeholder_lost",
            details={"placeholders": missing},
        )
    return restored_text


def has_translatable_text(text: str) -> bool:
    """False when text is only placeholders and punctuation."""
    return bool(re.search(r'\w', PLACEHOLDER_PATTERN.sub('', text)))


class DocumentTranslator:
    """
    Translates one document's slug, metadata and body into one target language.

    Calls are made one after another; documents are never fanned out in
    parallel against the service.
    """

    def __init__(self, service, target_lang: str, glossary_id: Optional[str] = None, source_lang: Optional[str] = None):
        self.service = service
        self.target_lang = target_lang
        self.glossary_id = glossary_id
        # Only sent alongside a glossary; otherwise the service detects the source
        self.source_lang = source_lang if glossary_id else None

    def translate_field(self, value: Optional[str]) -> Optional[str]:
        if not value or not value.strip():
            return value
        return self.service.translate_text(value, self.source_lang, self.target_lang, glossary_id=self.glossary_id)

    def translate_slug(self, slug: str) -> str:
        """Translate a slug as space-separated words, then sanitize again."""
        if not slug:
            return slug
        words = slug.replace('-', ' ')
        translated = self.service.translate_text(words, None, self.target_lang)
        return sanitize_slug(translated)

    def translate_meta(self, meta: Mapping[str, Any]) -> Dict[str, Any]:
        """Translate the text fields of a merged metadata mapping."""
        translated: Dict[str, Any] = {}
        for key in TRANSLATED_META_FIELDS:
            value = meta.get(key)
            if value is not None:
                translated[key] = self.translate_field(value)

        slug_source = meta.get('slug') or meta.get('title') or ''
        translated['slug'] = self.translate_slug(slug_source)
        return translated

    def translate_body(self, body: str) -> str:
        """Translate a markdown body; link targets are kept byte-identical."""
        protected_body, links = replace_links_with_placeholders(body)
        translated_body = self.translate_field(protected_body)

        translated_links = [
            ProtectedLink(
                placeholder=link.placeholder,
                text=self.translate_field(link.text) if has_translatable_text(link.text) else link.text,
                href=link.href,
            )
            for link in links
        ]
        return restore_links_from_placeholders(translated_body, translated_links)
