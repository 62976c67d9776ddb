"""
Translation Service Module

The external translation capability used by the translation orchestrator:
- DeepLService: text translation and glossary management over the DeepL REST API
- create_translation_service: builds a service from config, or None without an API key

For the HTTP calls themselves, see translator/providers.py
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from mdbuilder import language_codes as lc
from mdbuilder.config import TranslationConfig
from mdbuilder.logger import get_logger
from mdbuilder.translator import providers

logger = get_logger(__name__)

DEEPL_FREE_API_URL = "https://api-free.deepl.com"
DEEPL_PRO_API_URL = "https://api.deepl.com"


@dataclass(frozen=True)
class GlossaryInfo:
    """A glossary known to the service."""
    glossary_id: str
    name: str
    source_lang: str
    target_lang: str


def default_api_url(api_key: str) -> str:
    """Free-tier keys end with ':fx' and use a separate host."""
    return DEEPL_FREE_API_URL if api_key.endswith(":fx") else DEEPL_PRO_API_URL


class DeepLService:
    """DeepL translation service."""

    def __init__(
        self,
        api_key: str,
        api_url: Optional[str] = None,
        timeout: Any = 30,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = api_key
        self.api_url = api_url or default_api_url(api_key)
        self.timeout = timeout
        self.transport = transport
        logger.info(f"Initialized translation service at {self.api_url}")

    def translate_text(
        self,
        text: str,
        source_lang: Optional[str],
        target_lang: str,
        glossary_id: Optional[str] = None,
    ) -> str:
        """
        Translate one text.

        Args:
            text: Text to translate
            source_lang: Source language tag, or None to let the service detect it
            target_lang: Target language tag (content spelling, e.g. 'fr', 'pt-br')
            glossary_id: Optional glossary to apply

        Returns:
            Translated text; multiple returned segments are joined by newlines.

        Raises:
            TranslationError: On any service failure.
        """
        # The API only accepts a glossary together with an explicit source language
        source = lc.to_deepl_glossary_code(source_lang).upper() if source_lang else None
        translated = providers.call_translate_api(
            self,
            [text],
            target_lang=lc.to_deepl_target_code(target_lang),
            source_lang=source,
            glossary_id=glossary_id,
        )
        return "\n".join(translated)

    def list_glossaries(self) -> List[GlossaryInfo]:
        return [
            GlossaryInfo(
                glossary_id=item.get("glossary_id", ""),
                name=item.get("name", ""),
                source_lang=str(item.get("source_lang", "")).lower(),
                target_lang=str(item.get("target_lang", "")).lower(),
            )
            for item in providers.call_list_glossaries(self)
        ]

    def create_glossary(self, name: str, source_lang: str, target_lang: str, entries: Dict[str, str]) -> str:
        return providers.call_create_glossary(
            self,
            name=name,
            source_lang=lc.to_deepl_glossary_code(source_lang),
            target_lang=lc.to_deepl_glossary_code(target_lang),
            entries=entries,
        )


def create_translation_service(translation_config: TranslationConfig) -> Optional[DeepLService]:
    """Return a service for the configured key, or None when translation is unavailable."""
    if not translation_config.enabled:
        return None
    api_key = (translation_config.api_key or "").strip()
    if not api_key:
        return None
    return DeepLService(
        api_key=api_key,
        api_url=translation_config.api_url,
        timeout=translation_config.timeout,
    )
