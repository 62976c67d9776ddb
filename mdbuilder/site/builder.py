"""
Site Builder Module

Runs the build pipeline in strict stages; each stage finishes before the next starts:
1. Optional output cleaning
2. Translation orchestration (writes new source documents)
3. Render plans for every source document, built concurrently
4. Translation-group index over all plans
5. Template rendering and writing, concurrently
6. sitemap.xml
7. Link validation over the written tree

A fatal error at any stage aborts the build.
"""

import shutil
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from mdbuilder.config import BuilderConfig
from mdbuilder.core.markdown import MarkdownRenderer
from mdbuilder.core.plan import RenderPlan, build_render_plans, collect_markdown_files
from mdbuilder.logger import get_logger
from mdbuilder.site.groups import TranslationGroupIndex
from mdbuilder.site.links import LinkCheckReport, validate_links
from mdbuilder.site.sitemap import write_sitemap
from mdbuilder.site.template import TemplateRenderer, TemplateWarning
from mdbuilder.translation.manager import TranslationManager, TranslationResult

logger = get_logger(__name__)


@dataclass
class BuildResult:
    """Outcome of one build."""
    plans: List[RenderPlan] = field(default_factory=list)
    written: List[Path] = field(default_factory=list)
    sitemap_path: Optional[Path] = None
    link_report: Optional[LinkCheckReport] = None
    translation: Optional[TranslationResult] = None
    warnings: List[TemplateWarning] = field(default_factory=list)


class SiteBuilder:
    """
    Builds the static site described by a BuilderConfig.

    The template cache and the translation manager (with its glossary cache)
    live as long as the builder, so a preview server can rebuild repeatedly and
    call invalidate_templates() when a template changes.
    """

    def __init__(
        self,
        config: BuilderConfig,
        translation_manager: Optional[TranslationManager] = None,
        template_renderer: Optional[TemplateRenderer] = None,
        markdown_renderer: Optional[MarkdownRenderer] = None,
    ):
        self.config = config
        self.translation_manager = translation_manager or TranslationManager(config)
        self.template_renderer = template_renderer or TemplateRenderer(config)
        self.markdown_renderer = markdown_renderer or MarkdownRenderer(
            extensions=config.markdown_extensions,
            extension_configs=config.markdown_extension_configs,
            utm_params=config.utm_params,
            base_url=config.base_url,
        )

    def invalidate_templates(self) -> None:
        self.template_renderer.invalidate()

    def clean_output(self) -> None:
        """Empty the output directory, keeping the directory itself."""
        output_dir = self.config.output_dir
        if not output_dir.is_dir():
            return
        for child in output_dir.iterdir():
            if child.is_dir() and not child.is_symlink():
                shutil.rmtree(child)
            else:
                child.unlink()
        logger.info(f"Cleaned {output_dir}")

    def _write_page(self, plan: RenderPlan, index: TranslationGroupIndex):
        page = self.template_renderer.render(plan, index)
        plan.output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(plan.output_path, 'w', encoding='utf-8', newline='\n') as f:
            f.write(page.html)
        logger.info(f"Generated {plan.output_path}")
        return plan.output_path, page.warnings

    def build(self, refresh_translations: bool = False, skip_link_check: Optional[bool] = None) -> BuildResult:
        """
        Build the site.

        Args:
            refresh_translations: Re-translate documents regardless of modification times
            skip_link_check: Override the configured skip_link_check

        Returns:
            BuildResult

        Raises:
            BuildError: Any fatal configuration, content, translation or link error.
        """
        result = BuildResult()
        if self.config.clean:
            self.clean_output()

        result.translation = self.translation_manager.ensure_translations(refresh=refresh_translations)

        source_files = collect_markdown_files(self.config.content_dir)
        if not source_files:
            logger.warning(f"No markdown files found in {self.config.content_dir}.")
            return result

        result.plans = build_render_plans(source_files, self.config, self.markdown_renderer)
        index = TranslationGroupIndex(
            result.plans,
            self.config.base_url,
            self.config.default_lang,
            self.config.supported_langs,
        )

        self.config.output_dir.mkdir(parents=True, exist_ok=True)
        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            pages = list(executor.map(lambda plan: self._write_page(plan, index), result.plans))

        for output_path, warnings in pages:
            result.written.append(output_path)
            result.warnings.extend(warnings)

        result.sitemap_path = write_sitemap(result.plans, self.config.output_dir, self.config.base_url, index=index)

        if skip_link_check is None:
            skip_link_check = self.config.skip_link_check
        if skip_link_check:
            logger.info("Skipping link check")
        else:
            result.link_report = validate_links(self.config.output_dir)

        logger.info(f"Built {len(result.written)} page(s) into {self.config.output_dir}")
        return result
