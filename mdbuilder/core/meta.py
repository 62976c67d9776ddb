"""
Page metadata: site defaults, front matter and derived fields merged into one record.

Precedence, lowest to highest:

1. site defaults (``default_meta`` in the config)
2. the document's front matter
3. derived fields (``slug``, ``lang``, ``output``)

A layer only overrides a key it actually sets.
"""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from mdbuilder.core.frontmatter import FrontMatter, parse_bool


@dataclass(frozen=True)
class PageMeta:
    """Resolved metadata for one output page."""
    title: str
    description: str
    sidebar_title: str
    sidebar_summary: str
    back_link_href: str
    back_link_label: str
    slug: str
    output: str
    lang: str
    translation_of: Optional[str] = None
    translate: bool = False
    noindex: bool = False
    og_image: Optional[str] = None
    twitter_image: Optional[str] = None

    @property
    def group_key(self) -> str:
        """Key shared by all language variants of this page."""
        if self.translation_of and self.translation_of.strip():
            return self.translation_of.strip()
        return self.slug


def merge_layers(*layers: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Merge front-matter-keyed layers; later layers win, None never overrides.

    Examples:
        >>> merge_layers({'title': 'Site'}, {'title': None, 'slug': 'a'}, {'slug': 'b'})
        {'title': 'Site', 'slug': 'b'}
    """
    merged: Dict[str, Any] = {}
    for layer in layers:
        for key, value in layer.items():
            if value is not None:
                merged[key] = value
    return merged


def merge_meta(
    defaults: Mapping[str, Any],
    front_matter: FrontMatter,
    derived: Mapping[str, Any],
) -> PageMeta:
    """
    Build a PageMeta from the three metadata layers.

    Args:
        defaults: Site-wide default metadata (front-matter keys)
        front_matter: The document's own metadata
        derived: Fields computed by the resolver; must contain slug, lang and output
    """
    merged = merge_layers(defaults, front_matter.as_dict(), derived)
    return PageMeta(
        title=merged.get('title', ''),
        description=merged.get('description', ''),
        sidebar_title=merged.get('sidebarTitle', ''),
        sidebar_summary=merged.get('sidebarSummary', ''),
        back_link_href=merged.get('backLinkHref', ''),
        back_link_label=merged.get('backLinkLabel', ''),
        slug=merged['slug'],
        output=merged['output'],
        lang=merged['lang'],
        translation_of=merged.get('translationOf'),
        translate=parse_bool(merged.get('translate', False)),
        noindex=parse_bool(merged.get('noindex', False)),
        og_image=merged.get('ogImage') or None,
        twitter_image=merged.get('twitterImage') or None,
    )
