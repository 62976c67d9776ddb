"""
Translation Service Exceptions

Separated from service.py to avoid circular imports between service.py and
providers.py.
"""

from mdbuilder.core.exceptions import BuildError


class TranslationError(BuildError):
    """Translation service error with optional code and details."""


class GlossaryError(TranslationError):
    """Glossary listing or creation failed."""
