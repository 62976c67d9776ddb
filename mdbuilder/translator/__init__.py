"""
Translator Module

This module provides the external machine translation service.
"""

from mdbuilder.translator.exceptions import GlossaryError, TranslationError
from mdbuilder.translator.service import DeepLService, GlossaryInfo, create_translation_service

__all__ = ['GlossaryError', 'TranslationError', 'DeepLService', 'GlossaryInfo', 'create_translation_service']
