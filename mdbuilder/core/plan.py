"""
Render plans: one fully resolved, immutable unit of work per source document.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Sequence

from mdbuilder import language_codes as lc
from mdbuilder.config import BuilderConfig
from mdbuilder.core.exceptions import DuplicateOutputError
from mdbuilder.core.frontmatter import parse_front_matter
from mdbuilder.core.markdown import MarkdownRenderer
from mdbuilder.core.meta import PageMeta, merge_meta
from mdbuilder.core.paths import (
    resolve_lang,
    resolve_output_path,
    sanitize_slug,
    slug_from_filename,
)
from mdbuilder.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RenderPlan:
    """Everything needed to write one output page."""
    source_path: Path
    output_path: Path
    relative_output: str
    html: str
    meta: PageMeta

    @property
    def lang(self) -> str:
        return self.meta.lang

    @property
    def group_key(self) -> str:
        return self.meta.group_key


def collect_markdown_files(content_dir: Path) -> List[Path]:
    """All markdown files below content_dir, in stable order."""
    if not content_dir.is_dir():
        return []
    return sorted(p for p in content_dir.rglob('*.md') if p.is_file())


def create_plan(source_path: Path, config: BuilderConfig, renderer: MarkdownRenderer) -> RenderPlan:
    """
    Read, resolve and render one source document.

    Args:
        source_path: Markdown file inside config.content_dir
        config: Build configuration
        renderer: Markdown renderer shared across workers
    """
    source_path = source_path.resolve()
    relative_source = source_path.relative_to(config.content_dir.resolve()).as_posix()
    parsed = parse_front_matter(source_path.read_text(encoding='utf-8'))
    meta = parsed.meta

    lang = resolve_lang(meta.lang, relative_source, config.supported_langs, config.default_lang)
    if meta.lang and lang != lc.normalize_language_tag(meta.lang):
        logger.warning(f"Unsupported lang '{meta.lang}' in {relative_source}; using '{lang}'")

    slug = sanitize_slug(meta.slug or slug_from_filename(relative_source))
    relative_output = resolve_output_path(relative_source, slug)

    page_meta = merge_meta(
        config.default_meta,
        meta,
        {'slug': slug, 'lang': lang, 'output': relative_output},
    )

    return RenderPlan(
        source_path=source_path,
        output_path=config.output_dir.joinpath(*relative_output.split('/')),
        relative_output=relative_output,
        html=renderer.render(parsed.body),
        meta=page_meta,
    )


def ensure_unique_outputs(plans: Sequence[RenderPlan]) -> None:
    """
    Raises:
        DuplicateOutputError: If two plans write the same output path.
    """
    sources_by_output: Dict[str, List[str]] = {}
    for plan in plans:
        sources_by_output.setdefault(plan.relative_output, []).append(str(plan.source_path))

    conflicts = {output: sources for output, sources in sources_by_output.items() if len(sources) > 1}
    if conflicts:
        raise DuplicateOutputError(conflicts)


def build_render_plans(
    source_files: Sequence[Path],
    config: BuilderConfig,
    renderer: MarkdownRenderer,
) -> List[RenderPlan]:
    """Create plans for all documents concurrently, then check output uniqueness."""
    with ThreadPoolExecutor(max_workers=config.max_workers) as executor:
        plans = list(executor.map(lambda path: create_plan(path, config, renderer), source_files))

    ensure_unique_outputs(plans)
    logger.debug(f"Created {len(plans)} render plans")
    return plans
