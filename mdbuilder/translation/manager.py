"""
Translation Manager Module

Main TranslationManager class that keeps machine-translated documents in sync:
- Scan the content tree for default-language documents marked for translation
- Plan one translation per (source document x target language) that is missing or stale
- Translate slug, metadata and body through the translation service
- Write the translated documents into the target language directories
"""

from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Dict, List, Optional

from mdbuilder.config import BuilderConfig
from mdbuilder.core.frontmatter import FrontMatter, format_front_matter, parse_front_matter
from mdbuilder.core.meta import merge_layers
from mdbuilder.core.paths import resolve_lang, sanitize_slug, slug_from_filename
from mdbuilder.core.plan import collect_markdown_files
from mdbuilder.logger import get_logger
from mdbuilder.translation.glossary import GlossaryCache
from mdbuilder.translation.processor import DocumentTranslator
from mdbuilder.translator.exceptions import TranslationError
from mdbuilder.translator.service import create_translation_service

logger = get_logger(__name__)


@dataclass(frozen=True)
class SourceDocument:
    """A default-language document eligible for translation."""
    path: Path
    relative_path: str
    meta: FrontMatter
    body: str
    slug: str
    translation_of: str


@dataclass(frozen=True)
class TranslatePlan:
    """One pending translation of a source document."""
    source: SourceDocument
    target_lang: str
    target_path: Path


@dataclass
class TranslationResult:
    """Outcome of one ensure_translations run."""
    written: List[Path] = field(default_factory=list)
    skipped: int = 0
    sources: int = 0


class TranslationManager:
    """
    Manages automated translation of content documents.

    Features:
    - Only default-language documents with ``translate: true`` are sources
    - Up-to-date translations (newer than their source) are skipped unless refreshed
    - Link targets survive translation unchanged
    - Custom glossaries per target language, cached per manager
    """

    def __init__(self, config: BuilderConfig, service=None):
        """
        Initialize translation manager.

        Args:
            config: Build configuration
            service: Translation service; built from config when omitted
        """
        self.config = config
        self.translation_config = config.translations
        self.service = service if service is not None else create_translation_service(self.translation_config)
        self.glossaries: Optional[GlossaryCache] = None
        if self.service is not None:
            self.glossaries = GlossaryCache(
                self.service,
                self.translation_config.default_lang,
                self.translation_config.custom_glossary,
            )
        self._warned_missing_service = False

    @property
    def default_lang(self) -> str:
        return self.translation_config.default_lang

    def scan(self) -> List[SourceDocument]:
        """Find every document that is a translation source."""
        content_dir = self.config.content_dir.resolve()
        sources: List[SourceDocument] = []

        for path in collect_markdown_files(content_dir):
            relative_path = path.resolve().relative_to(content_dir).as_posix()
            parsed = parse_front_matter(path.read_text(encoding='utf-8'))
            meta = parsed.meta

            lang = resolve_lang(meta.lang, relative_path, self.config.supported_langs, self.default_lang)
            if lang != self.default_lang or not meta.translate:
                continue

            slug = sanitize_slug(meta.slug or slug_from_filename(relative_path))
            translation_of = (meta.translation_of or '').strip() or slug
            sources.append(SourceDocument(
                path=path,
                relative_path=relative_path,
                meta=meta,
                body=parsed.body,
                slug=slug,
                translation_of=translation_of,
            ))

        logger.debug(f"Found {len(sources)} translation source(s)")
        return sources

    def target_path_for(self, source: SourceDocument, target_lang: str) -> Path:
        """
        Where the translation of a source document lives.

        ``guide/intro.md`` -> ``<target>/guide/intro.md``; a source inside the
        default-language directory (``en/guide/intro.md``) maps to the same place.
        """
        parts = list(PurePosixPath(source.relative_path).parts)
        if len(parts) > 1 and parts[0].lower() == self.default_lang:
            parts = parts[1:]
        return self.config.content_dir.joinpath(target_lang, *parts)

    def is_up_to_date(self, source_path: Path, target_path: Path) -> bool:
        try:
            return target_path.stat().st_mtime >= source_path.stat().st_mtime
        except FileNotFoundError:
            return False

    def plan(self, sources: List[SourceDocument], refresh: bool = False) -> List[TranslatePlan]:
        """Build the pending translations for the given sources."""
        plans: List[TranslatePlan] = []
        skipped = 0
        for source in sources:
            for target_lang in self.translation_config.target_languages:
                target_path = self.target_path_for(source, target_lang)
                if not refresh and self.is_up_to_date(source.path, target_path):
                    skipped += 1
                    continue
                plans.append(TranslatePlan(source=source, target_lang=target_lang, target_path=target_path))

        if skipped:
            logger.debug(f"Skipped {skipped} up-to-date translation(s)")
        return plans

    def translate(self, plan: TranslatePlan) -> str:
        """
        Translate one plan into a complete markdown document.

        Raises:
            TranslationError: If the service fails; no partial document is produced.
        """
        glossary_id = self.glossaries.get_glossary_id(plan.target_lang) if self.glossaries else None
        translator = DocumentTranslator(
            self.service,
            plan.target_lang,
            glossary_id=glossary_id,
            source_lang=self.default_lang,
        )

        source = plan.source
        merged_meta = merge_layers(
            self.config.default_meta,
            source.meta.as_dict(),
            {'slug': source.slug, 'translationOf': source.translation_of},
        )
        translated_meta = translator.translate_meta(merged_meta)
        translated_body = translator.translate_body(source.body)

        document_meta: Dict[str, object] = merge_layers(merged_meta, translated_meta)
        document_meta.pop('lang', None)
        document_meta.pop('translate', None)

        return f"{format_front_matter(document_meta)}\n\n{translated_body}\n"

    def write(self, plan: TranslatePlan, document: str) -> Path:
        plan.target_path.parent.mkdir(parents=True, exist_ok=True)
        with open(plan.target_path, 'w', encoding='utf-8', newline='\n') as f:
            f.write(document)
        logger.info(f"Translated -> {plan.target_path}")
        return plan.target_path

    def ensure_translations(self, refresh: bool = False) -> TranslationResult:
        """
        Scan, plan, translate and write all pending translations.

        Args:
            refresh: Re-translate even when a translation is newer than its source

        Returns:
            TranslationResult

        Raises:
            TranslationError: On the first failing translation.
        """
        result = TranslationResult()
        if not self.translation_config.enabled or not self.translation_config.target_languages:
            return result

        if self.service is None:
            if not self._warned_missing_service:
                self._warned_missing_service = True
                logger.warning("Skipping automatic translations: set an API key to enable.")
            return result

        sources = self.scan()
        result.sources = len(sources)
        plans = self.plan(sources, refresh=refresh)
        result.skipped = len(sources) * len(self.translation_config.target_languages) - len(plans)

        for plan in plans:
            try:
                document = self.translate(plan)
            except TranslationError as e:
                logger.error(f"Translation of {plan.source.relative_path} to {plan.target_lang} failed: {e}")
                raise
            result.written.append(self.write(plan, document))

        if plans:
            logger.info(f"Translated {len(result.written)} document(s)")
        return result
