"""
Glossary cache.

Custom glossaries force the translation of specific terms. A glossary is looked
up (or created) once per (source language, target language) pair and the id is
remembered for the lifetime of the cache. Glossary failures never fail a build:
the pair is cached as "no glossary" instead.
"""

import threading
from typing import Dict, Mapping, Optional, Tuple

from mdbuilder import language_codes as lc
from mdbuilder.logger import get_logger
from mdbuilder.translator.exceptions import TranslationError

logger = get_logger(__name__)

GLOSSARY_NAME_PREFIX = "mdbuilder-custom"


def glossary_name(source_lang: str, target_lang: str) -> str:
    return f"{GLOSSARY_NAME_PREFIX}-{source_lang}-{target_lang}"


class GlossaryCache:
    """Per-language-pair glossary ids, owned by one translation manager."""

    def __init__(self, service, default_lang: str, custom_glossary: Mapping[str, Mapping[str, str]]):
        self.service = service
        self.default_lang = default_lang
        self.custom_glossary = custom_glossary
        self._cache: Dict[Tuple[str, str], Optional[str]] = {}
        self._lock = threading.Lock()

    def get_glossary_id(self, target_lang: str) -> Optional[str]:
        """
        Return the glossary id for default_lang -> target_lang, or None.

        Concurrent first calls may both resolve; both store the same id.
        """
        key = (self.default_lang, target_lang)
        with self._lock:
            if key in self._cache:
                return self._cache[key]

        glossary_id = self._resolve(target_lang)
        with self._lock:
            self._cache[key] = glossary_id
        return glossary_id

    def _resolve(self, target_lang: str) -> Optional[str]:
        entries = self.custom_glossary.get(target_lang)
        if not entries:
            return None

        name = glossary_name(self.default_lang, target_lang)
        source_code = lc.to_deepl_glossary_code(self.default_lang)
        target_code = lc.to_deepl_glossary_code(target_lang)

        try:
            for glossary in self.service.list_glossaries():
                if (
                    glossary.name == name
                    and glossary.source_lang == source_code
                    and glossary.target_lang == target_code
                ):
                    logger.debug(f"Reusing glossary '{name}' ({glossary.glossary_id})")
                    return glossary.glossary_id

            glossary_id = self.service.create_glossary(name, self.default_lang, target_lang, dict(entries))
            logger.info(f"Created glossary '{name}' with {len(entries)} entries")
            return glossary_id
        except TranslationError as e:
            logger.warning(f"Glossary '{name}' unavailable, translating without it: {e}")
            return None

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
