"""
Sitemap generation.

One ``<url>`` entry per indexable output page, with ``xhtml:link`` alternates
for its translations. URLs come from the same normalization as canonical and
alternate links.
"""

from pathlib import Path
from typing import Dict, List, Optional, Sequence
from xml.sax.saxutils import escape, quoteattr

from mdbuilder.core.paths import output_url
from mdbuilder.core.plan import RenderPlan
from mdbuilder.logger import get_logger
from mdbuilder.site.groups import X_DEFAULT, TranslationGroupIndex

logger = get_logger(__name__)

SITEMAP_FILE_NAME = 'sitemap.xml'
SITEMAP_HEADER = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9" '
    'xmlns:xhtml="http://www.w3.org/1999/xhtml">'
)
SITEMAP_FOOTER = '</urlset>'


def sitemap_plans(plans: Sequence[RenderPlan]) -> List[RenderPlan]:
    """Deduplicate by output (last wins), drop noindex pages, sort by output."""
    unique: Dict[str, RenderPlan] = {}
    for plan in plans:
        unique[plan.relative_output] = plan
    return sorted(
        (plan for plan in unique.values() if not plan.meta.noindex),
        key=lambda plan: plan.relative_output,
    )


def render_sitemap(plans: Sequence[RenderPlan], index: TranslationGroupIndex, base_url: str) -> str:
    rows: List[str] = []
    for plan in sitemap_plans(plans):
        lines = ['  <url>', f"    <loc>{escape(output_url(plan.relative_output, base_url))}</loc>"]
        for alt in index.alternates(plan):
            if alt.lang == X_DEFAULT:
                continue
            lines.append(
                f'    <xhtml:link rel="alternate" hreflang={quoteattr(alt.lang)} href={quoteattr(alt.href)} />'
            )
        lines.append('  </url>')
        rows.append('\n'.join(lines))

    body = '\n'.join(rows)
    return f"{SITEMAP_HEADER}\n{body}\n{SITEMAP_FOOTER}\n" if body else f"{SITEMAP_HEADER}\n{SITEMAP_FOOTER}\n"


def write_sitemap(
    plans: Sequence[RenderPlan],
    output_dir: Path,
    base_url: str,
    index: Optional[TranslationGroupIndex] = None,
    default_lang: str = 'en',
) -> Path:
    """
    Write sitemap.xml at the output root.

    Args:
        plans: Every render plan of the build
        output_dir: Output root
        base_url: Site base URL
        index: Translation groups; built from plans when omitted
        default_lang: Default language, used only when index is omitted
    """
    if index is None:
        index = TranslationGroupIndex(plans, base_url, default_lang)

    sitemap_path = Path(output_dir) / SITEMAP_FILE_NAME
    sitemap_path.parent.mkdir(parents=True, exist_ok=True)
    with open(sitemap_path, 'w', encoding='utf-8', newline='\n') as f:
        f.write(render_sitemap(plans, index, base_url))
    logger.info(f"Generated {sitemap_path}")
    return sitemap_path
