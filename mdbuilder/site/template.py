"""
Template Renderer / Head Injector

Turns a render plan into a complete HTML document:
- loads the page template (or the homepage template for the root index)
- substitutes the known ``{{TOKEN}}`` placeholders in one pass
- inserts the generated head block right before the first ``</head>``

Placeholder problems (missing required tokens, unknown tokens) are collected as
warnings; a template without ``</head>`` is fatal.
"""

import re
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from html import escape
from pathlib import Path
from typing import Callable, Dict, List, Optional
from urllib.parse import urlparse

from mdbuilder import language_codes as lc
from mdbuilder.config import BuilderConfig
from mdbuilder.core.exceptions import TemplateError
from mdbuilder.core.paths import to_absolute_url
from mdbuilder.core.plan import RenderPlan
from mdbuilder.logger import get_logger
from mdbuilder.site.groups import X_DEFAULT, AlternateLink, TranslationGroupIndex

logger = get_logger(__name__)

HOMEPAGE_OUTPUT = 'index.html'
HEAD_INDENT = '    '

_TOKEN_PATTERN = re.compile(r'\{\{([A-Z_]+)\}\}')
_HEAD_CLOSE_PATTERN = re.compile(r'</head>', re.IGNORECASE)


class Placeholder(str, Enum):
    """Tokens a template may contain."""
    TITLE = 'TITLE'
    BODY = 'BODY'
    LANG = 'LANG'
    BACK_LINK_HREF = 'BACK_LINK_HREF'
    BACK_LINK_LABEL = 'BACK_LINK_LABEL'
    SIDEBAR_TITLE = 'SIDEBAR_TITLE'
    SIDEBAR_SUMMARY = 'SIDEBAR_SUMMARY'
    YEAR = 'YEAR'
    LANGUAGE_SWITCHER = 'LANGUAGE_SWITCHER'

    @property
    def token(self) -> str:
        return f"{{{{{self.value}}}}}"


REQUIRED_PLACEHOLDERS = (Placeholder.TITLE, Placeholder.BODY)


@dataclass(frozen=True)
class TemplateWarning:
    """A non-fatal template problem."""
    template: str
    code: str
    message: str


@dataclass
class RenderedPage:
    html: str
    warnings: List[TemplateWarning] = field(default_factory=list)


class TemplateCache:
    """Template text by resolved path, kept until invalidate() is called."""

    def __init__(self):
        self._templates: Dict[Path, str] = {}
        self._lock = threading.Lock()

    def load(self, template_path: Path) -> str:
        """
        Raises:
            TemplateError: If the template file cannot be read.
        """
        resolved = Path(template_path).resolve()
        with self._lock:
            cached = self._templates.get(resolved)
        if cached is not None:
            return cached

        try:
            content = resolved.read_text(encoding='utf-8')
        except OSError as e:
            raise TemplateError(
                f"Cannot read template {resolved}: {e}",
                code="template_unreadable",
                details={"template": str(resolved)},
            ) from e

        with self._lock:
            self._templates[resolved] = content
        return content

    def invalidate(self) -> None:
        with self._lock:
            count = len(self._templates)
            self._templates.clear()
        if count:
            logger.debug(f"Invalidated {count} cached template(s)")


def check_placeholders(template: str, template_name: str) -> List[TemplateWarning]:
    """Report missing required tokens and tokens that are not placeholders."""
    warnings: List[TemplateWarning] = []
    for placeholder in REQUIRED_PLACEHOLDERS:
        if placeholder.token not in template:
            warnings.append(TemplateWarning(
                template=template_name,
                code="missing_placeholder",
                message=f"Template {template_name} is missing required placeholder {placeholder.token}",
            ))

    known = {placeholder.value for placeholder in Placeholder}
    for name in sorted(set(_TOKEN_PATTERN.findall(template)) - known):
        warnings.append(TemplateWarning(
            template=template_name,
            code="unknown_placeholder",
            message=f"Template {template_name} contains unknown placeholder {{{{{name}}}}}",
        ))
    return warnings


def substitute_placeholders(template: str, values: Dict[Placeholder, str]) -> str:
    """Replace known tokens in a single pass; substituted text is never rescanned."""

    def replace(match: re.Match) -> str:
        try:
            placeholder = Placeholder(match.group(1))
        except ValueError:
            return match.group(0)
        return values.get(placeholder, '')

    return _TOKEN_PATTERN.sub(replace, template)


def render_language_switcher(current_lang: str, alternates: List[AlternateLink]) -> str:
    """Language pills; empty when the page exists in one language only."""
    available = [alt for alt in alternates if alt.lang != X_DEFAULT]
    if len(available) <= 1:
        return ''

    pills = []
    for alt in available:
        label = escape(alt.lang.upper())
        name = escape(lc.get_language_name(alt.lang) or alt.lang)
        if alt.lang == current_lang:
            pills.append(f'<span class="language-pill is-active" title="{name}">{label}</span>')
        else:
            href = escape(urlparse(alt.href).path or '/')
            pills.append(
                f'<a href="{href}" class="language-pill" hreflang="{escape(alt.lang)}" title="{name}">{label}</a>'
            )

    joined = '<span class="language-separator">&middot;</span>'.join(pills)
    return f'<div class="language-switcher" aria-label="Language selector">{joined}</div>'


def build_head_tags(
    plan: RenderPlan,
    base_url: str,
    canonical_url: str,
    page_url: str,
    alternates: List[AlternateLink],
) -> str:
    """The generated head block, one tag per line."""
    meta = plan.meta
    title = escape(meta.title)
    description = escape(meta.description)

    tags = [
        f'<meta name="description" content="{description}" />',
        f'<link rel="canonical" href="{escape(canonical_url)}" />',
        f'<meta property="og:url" content="{escape(page_url)}" />',
        f'<meta property="og:title" content="{title}" />',
        f'<meta property="og:description" content="{description}" />',
    ]

    if meta.og_image:
        tags.append(f'<meta property="og:image" content="{escape(to_absolute_url(meta.og_image, base_url))}" />')
    else:
        logger.warning(
            f"Missing ogImage for page '{plan.relative_output}'. "
            f"Set ogImage in default_meta or the page front matter to include an Open Graph image."
        )

    tags.extend([
        '<meta name="twitter:card" content="summary_large_image" />',
        f'<meta name="twitter:title" content="{title}" />',
        f'<meta name="twitter:description" content="{description}" />',
    ])
    if meta.twitter_image:
        tags.append(f'<meta name="twitter:image" content="{escape(to_absolute_url(meta.twitter_image, base_url))}" />')

    for alt in alternates:
        if alt.lang == X_DEFAULT:
            continue
        tags.append(f'<link rel="alternate" href="{escape(alt.href)}" hreflang="{escape(alt.lang)}" />')

    if meta.noindex:
        tags.append('<meta name="robots" content="noindex, nofollow" />')

    return '\n'.join(f"{HEAD_INDENT}{tag}" for tag in tags)


def inject_head(document: str, head_block: str, template_name: str) -> str:
    """
    Insert head_block immediately before the first closing head tag.

    Raises:
        TemplateError: If the document has no closing head tag.
    """
    match = _HEAD_CLOSE_PATTERN.search(document)
    if not match:
        logger.error(f"Template {template_name} is missing </head>. Cannot inject head tags.")
        raise TemplateError(
            f"Template {template_name} is missing </head> tag",
            code="missing_head_close",
            details={"template": template_name},
        )
    position = match.start()
    return f"{document[:position]}{head_block}\n{document[position:]}"


class TemplateRenderer:
    """
    Renders plans through the configured templates.

    Features:
    - Homepage template for the root index page, when configured
    - Canonical link from the translation group, not the page itself
    - Template text cached per renderer until invalidate() is called
    """

    def __init__(
        self,
        config: BuilderConfig,
        cache: Optional[TemplateCache] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.config = config
        self.cache = cache or TemplateCache()
        self.clock = clock

    def template_path_for(self, plan: RenderPlan) -> Path:
        if plan.relative_output == HOMEPAGE_OUTPUT and self.config.homepage_template_path:
            return self.config.homepage_template_path
        return self.config.template_path

    def invalidate(self) -> None:
        self.cache.invalidate()

    def render(self, plan: RenderPlan, index: TranslationGroupIndex) -> RenderedPage:
        """
        Render one plan.

        Args:
            plan: The page to render
            index: Translation groups of the whole build

        Returns:
            RenderedPage with the final HTML and any template warnings

        Raises:
            TemplateError: If the template cannot be read or has no </head>.
        """
        template_path = self.template_path_for(plan)
        template_name = str(template_path)
        template = self.cache.load(template_path)

        warnings = check_placeholders(template, template_name)
        for warning in warnings:
            logger.warning(warning.message)

        meta = plan.meta
        alternates = index.alternates(plan)
        values = {
            Placeholder.TITLE: escape(meta.title),
            Placeholder.BODY: plan.html,
            Placeholder.LANG: meta.lang,
            Placeholder.BACK_LINK_HREF: escape(meta.back_link_href),
            Placeholder.BACK_LINK_LABEL: escape(meta.back_link_label),
            Placeholder.SIDEBAR_TITLE: escape(meta.sidebar_title),
            Placeholder.SIDEBAR_SUMMARY: escape(meta.sidebar_summary),
            Placeholder.YEAR: str(self.clock().year),
            Placeholder.LANGUAGE_SWITCHER: render_language_switcher(meta.lang, alternates),
        }
        document = substitute_placeholders(template, values)

        head_block = build_head_tags(
            plan,
            self.config.base_url,
            canonical_url=index.canonical_url(plan),
            page_url=index.page_url(plan),
            alternates=alternates,
        )
        return RenderedPage(html=inject_head(document, head_block, template_name), warnings=warnings)
