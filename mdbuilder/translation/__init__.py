"""
Translation module - Keeps translated documents in sync with their sources

This module provides:
- TranslationManager: Scan, plan, translate and write workflow
- GlossaryCache: Per-language-pair custom glossary ids
- Link placeholder protection for document bodies
"""

from mdbuilder.translation.glossary import GlossaryCache, glossary_name
from mdbuilder.translation.manager import (
    SourceDocument,
    TranslatePlan,
    TranslationManager,
    TranslationResult,
)
from mdbuilder.translation.processor import (
    DocumentTranslator,
    ProtectedLink,
    replace_links_with_placeholders,
    restore_links_from_placeholders,
)
