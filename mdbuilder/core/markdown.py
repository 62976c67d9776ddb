"""
Markdown rendering.

Wraps Python-Markdown and post-processes the rendered HTML:
- heading ids come from ``slugify_anchor`` (the link checker re-derives ids the same way)
- mailto links are obfuscated
- external links optionally get UTM parameters
"""

import base64
import re
import threading
from typing import Any, Dict, Mapping, Optional, Sequence
from urllib.parse import urlencode, urlparse

import markdown

from mdbuilder.logger import get_logger

logger = get_logger(__name__)

ZERO_WIDTH_SPACE = '&#8203;'

_MAILTO_PATTERN = re.compile(r'<a([^>]*?)href="mailto:([^"]+)"([^>]*)>.*?</a>', re.IGNORECASE | re.DOTALL)
_EXTERNAL_HREF_PATTERN = re.compile(r'href="(https?://[^"]+)"')


def slugify_anchor(value: str, separator: str = '-') -> str:
    """
    Normalize heading text or an element id into an anchor id.

    Examples:
        >>> slugify_anchor('Get in touch!')
        'get-in-touch'
        >>> slugify_anchor('Email-Us')
        'email-us'
    """
    slug = value.strip().lower()
    slug = re.sub(r'[^\w\s-]', '', slug)
    slug = re.sub(r'[\s_-]+', separator, slug)
    return slug.strip(separator)


def obfuscate_mailto_links(html: str) -> str:
    """Replace mailto anchors with data attributes decoded client-side."""

    def replace(match: re.Match) -> str:
        before, email_with_extras, after = match.group(1), match.group(2), match.group(3)
        address = email_with_extras.split('?', 1)[0]
        user, at, domain = address.partition('@')
        if not at or not user or not domain:
            return match.group(0)

        obfuscated = ZERO_WIDTH_SPACE.join(address)
        encoded_user = base64.b64encode(user.encode('utf-8')).decode('ascii')
        encoded_domain = base64.b64encode(domain.encode('utf-8')).decode('ascii')
        merged_attrs = f"{before or ''}{after or ''}".strip()
        extra_attrs = f" {merged_attrs}" if merged_attrs else ''
        return (
            f'<a data-email-link href="#"{extra_attrs}>'
            f'<span data-email data-user="{encoded_user}" data-domain="{encoded_domain}">{obfuscated}</span></a>'
        )

    return _MAILTO_PATTERN.sub(replace, html)


def append_utm_params(html: str, utm_params: Optional[Mapping[str, str]], base_url: str) -> str:
    """
    Tag outbound links with UTM parameters and open them in a new tab.

    Links to the site's own host are left alone, as are links that already
    carry ``utm_campaign``.
    """
    if not utm_params:
        return html

    utm_string = urlencode(dict(utm_params))
    base_host = urlparse(base_url).hostname or ''

    def replace(match: re.Match) -> str:
        decoded = match.group(1).replace('&amp;', '&')
        host = urlparse(decoded).hostname
        if not host:
            return match.group(0)

        is_internal = bool(base_host) and host.endswith(base_host)
        if is_internal:
            return match.group(0)

        updated = decoded
        if 'utm_campaign=' not in decoded:
            updated = f"{decoded}{'&' if '?' in decoded else '?'}{utm_string}"
        escaped = updated.replace('&', '&amp;')
        return f'href="{escaped}" target="_blank" rel="noopener noreferrer"'

    return _EXTERNAL_HREF_PATTERN.sub(replace, html)


class MarkdownRenderer:
    """
    Thread-safe markdown renderer.

    Python-Markdown instances keep per-document state, so each worker thread
    gets its own instance.
    """

    def __init__(
        self,
        extensions: Sequence[str] = ('extra', 'toc', 'sane_lists'),
        extension_configs: Optional[Dict[str, Dict[str, Any]]] = None,
        utm_params: Optional[Mapping[str, str]] = None,
        base_url: str = '',
    ):
        self.extensions = list(extensions)
        self.extension_configs = {key: dict(value) for key, value in (extension_configs or {}).items()}
        if 'toc' in self.extensions:
            self.extension_configs.setdefault('toc', {})['slugify'] = slugify_anchor
        self.utm_params = utm_params
        self.base_url = base_url
        self._local = threading.local()

    def _get_markdown(self) -> markdown.Markdown:
        md = getattr(self._local, 'md', None)
        if md is None:
            md = markdown.Markdown(extensions=self.extensions, extension_configs=self.extension_configs)
            self._local.md = md
            logger.debug(f"Created markdown processor with extensions: {', '.join(self.extensions)}")
        return md

    def render(self, text: str) -> str:
        """Render markdown text to an HTML fragment."""
        md = self._get_markdown()
        md.reset()
        html = md.convert(text)
        html = obfuscate_mailto_links(html)
        return append_utm_params(html, self.utm_params, self.base_url)
