"""Internal link checker for the generated output tree.

Scans every ``*.html`` file under the output root and extracts ``href`` links
and element ids.

Rules:
- Ignore: ``mailto:``, ``tel:``, ``javascript:``, ``data:``, ``http(s)://``,
  protocol-relative links and bare ``#``.
- ``#fragment`` links must match an element id of the same page.
- Other links are resolved through ``RESOLUTION_STRATEGIES`` in order, and each
  candidate is tried as-is, with ``.html`` appended, and as a directory index.
- A fragment on a resolved HTML target must match an element id there.

Ids and fragments are compared after ``slugify_anchor`` normalization, the same
function that generates heading ids at render time.
"""

import os
from dataclasses import dataclass, field
from html.parser import HTMLParser
from pathlib import Path
from typing import Callable, Dict, List, Optional, Set, Tuple
from urllib.parse import unquote

from mdbuilder.core.exceptions import BrokenLinksError
from mdbuilder.core.markdown import slugify_anchor
from mdbuilder.logger import get_logger

logger = get_logger(__name__)

_IGNORE_PREFIXES = ('mailto:', 'tel:', 'javascript:', 'data:', 'http://', 'https://', '//')
INDEX_DOCUMENT = 'index.html'


class _LinkExtractor(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.hrefs: List[str] = []
        self.anchors: Set[str] = set()

    def handle_starttag(self, tag, attrs):
        for key, value in attrs:
            if value is None:
                continue
            if key == 'href':
                self.hrefs.append(value)
            elif key == 'id' or (key == 'name' and tag == 'a'):
                self.anchors.add(slugify_anchor(value))


@dataclass(frozen=True)
class ParsedPage:
    hrefs: Tuple[str, ...]
    anchors: frozenset


@dataclass(frozen=True)
class BrokenLink:
    """One unresolvable reference."""
    source: str
    href: str
    resolved: str
    reason: str = 'missing'

    def describe(self) -> str:
        if self.reason == 'missing_anchor':
            return f"- {self.href} from {self.source} -> no element with id '{self.resolved}'"
        return f"- {self.href} from {self.source} -> missing {self.resolved}"


@dataclass
class LinkCheckReport:
    scanned_files: int = 0
    checked_links: int = 0
    broken: List[BrokenLink] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.broken


def parse_page(html: str) -> ParsedPage:
    parser = _LinkExtractor()
    parser.feed(html)
    parser.close()
    return ParsedPage(hrefs=tuple(parser.hrefs), anchors=frozenset(parser.anchors))


def is_ignored(href: str) -> bool:
    value = href.strip()
    if not value or value == '#':
        return True
    return value.lower().startswith(_IGNORE_PREFIXES)


def split_href(href: str) -> Tuple[str, str]:
    """Split an href into (unquoted path, fragment); the query is dropped."""
    path, _, fragment = href.strip().partition('#')
    path = path.split('?', 1)[0]
    return unquote(path), unquote(fragment)


def resolve_from_root(target: str, page: Path, root: Path) -> Optional[Path]:
    """Absolute paths, and relative paths that do not climb, against the output root."""
    if target.startswith('../'):
        return None
    return root / target.lstrip('/')


def resolve_from_page(target: str, page: Path, root: Path) -> Optional[Path]:
    """Relative paths against the referencing page's directory."""
    if target.startswith('/'):
        return None
    return page.parent / target


# Tried in order; the first candidate that exists wins
RESOLUTION_STRATEGIES: Tuple[Callable[[str, Path, Path], Optional[Path]], ...] = (
    resolve_from_root,
    resolve_from_page,
)


def candidate_paths(target: str, page: Path, root: Path) -> List[Path]:
    """Normalized candidate paths for a link target, in resolution order."""
    candidates: List[Path] = []
    for strategy in RESOLUTION_STRATEGIES:
        candidate = strategy(target, page, root)
        if candidate is None:
            continue
        candidate = Path(os.path.normpath(candidate))
        if candidate not in candidates:
            candidates.append(candidate)
    return candidates


def path_variations(candidate: Path) -> List[Path]:
    return [candidate, Path(f"{candidate}.html"), candidate / INDEX_DOCUMENT]


def find_target(candidate: Path) -> Optional[Path]:
    """
    The file a candidate path serves, if any variation exists.

    A path the filesystem rejects (a name that is too long, for instance)
    counts as missing.
    """
    for variation in path_variations(candidate):
        try:
            if variation.is_file():
                return variation
            if variation.is_dir() and (variation / INDEX_DOCUMENT).is_file():
                return variation / INDEX_DOCUMENT
        except (OSError, ValueError) as e:
            logger.debug(f"Cannot check {variation}: {e}")
    return None


def _relative(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()


def check_links(output_dir: Path) -> LinkCheckReport:
    """
    Check every internal link of the output tree.

    Returns:
        LinkCheckReport with every broken link, in page order
    """
    root = Path(output_dir).resolve()
    report = LinkCheckReport()
    html_files = sorted(p for p in root.rglob('*.html') if p.is_file()) if root.is_dir() else []
    if not html_files:
        logger.warning(f"No generated HTML files found in {root}. Skipping link check.")
        return report

    pages: Dict[Path, ParsedPage] = {}

    def load(path: Path) -> ParsedPage:
        if path not in pages:
            pages[path] = parse_page(path.read_text(encoding='utf-8', errors='replace'))
        return pages[path]

    for html_path in html_files:
        report.scanned_files += 1
        page = load(html_path)
        source = _relative(html_path, root)

        for href in page.hrefs:
            if is_ignored(href):
                continue
            report.checked_links += 1
            target, fragment = split_href(href)

            if not target:
                if fragment and slugify_anchor(fragment) not in page.anchors:
                    report.broken.append(BrokenLink(source, href, slugify_anchor(fragment), 'missing_anchor'))
                continue

            candidates = candidate_paths(target, html_path, root)
            found = None
            for candidate in candidates:
                found = find_target(candidate)
                if found is not None:
                    break

            if found is None:
                report.broken.append(BrokenLink(source, href, _relative(candidates[0], root)))
                continue

            if fragment and found.suffix.lower() == '.html':
                anchor = slugify_anchor(fragment)
                if anchor not in load(found).anchors:
                    report.broken.append(BrokenLink(source, href, anchor, 'missing_anchor'))

    logger.debug(f"Checked {report.checked_links} links in {report.scanned_files} files")
    return report


def validate_links(output_dir: Path) -> LinkCheckReport:
    """
    Check links and fail on any broken one.

    Raises:
        BrokenLinksError: After the whole tree was scanned, listing every broken link.
    """
    report = check_links(output_dir)
    if report.broken:
        details = '\n'.join(link.describe() for link in report.broken)
        raise BrokenLinksError(f"Broken internal links found:\n{details}", report.broken)

    if report.scanned_files:
        logger.info("Link check passed: all internal links resolve.")
    return report
