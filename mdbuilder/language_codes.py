"""
Language tag mappings and utilities.

Standards:
- ISO 639-1: 2-letter language codes (en, nl, fr)
- BCP 47: Language + Region tags (en-GB, pt-BR)

Content trees use lowercase tags as directory names (``content/fr/...``,
``content/pt-br/...``). The translation service expects its own spelling of the
same tags; the ``to_deepl_*`` helpers handle that mapping.
"""

from typing import Optional

# ISO 639-1 language codes (2-letter) for the languages the translation service covers
ISO_639_1 = {
    'ar': 'Arabic',
    'bg': 'Bulgarian',
    'cs': 'Czech',
    'da': 'Danish',
    'de': 'German',
    'el': 'Greek',
    'en': 'English',
    'es': 'Spanish',
    'et': 'Estonian',
    'fi': 'Finnish',
    'fr': 'French',
    'hu': 'Hungarian',
    'id': 'Indonesian',
    'it': 'Italian',
    'ja': 'Japanese',
    'ko': 'Korean',
    'lt': 'Lithuanian',
    'lv': 'Latvian',
    'nb': 'Norwegian (Bokmål)',
    'nl': 'Dutch',
    'pl': 'Polish',
    'pt': 'Portuguese',
    'ro': 'Romanian',
    'ru': 'Russian',
    'sk': 'Slovak',
    'sl': 'Slovenian',
    'sv': 'Swedish',
    'tr': 'Turkish',
    'uk': 'Ukrainian',
    'zh': 'Chinese',
}

# BCP 47 language-region tags (lowercase, as used for directory names)
BCP_47_VARIANTS = {
    'en-gb': 'English (United Kingdom)',
    'en-us': 'English (United States)',
    'pt-br': 'Portuguese (Brazil)',
    'pt-pt': 'Portuguese (Portugal)',
    'zh-hans': 'Chinese (Simplified)',
    'zh-hant': 'Chinese (Traditional)',
}

ALL_LANGUAGE_CODES = {**ISO_639_1, **BCP_47_VARIANTS}

# Bare tags the service rejects as targets; map them to a regional default
DEEPL_TARGET_DEFAULTS = {
    'en': 'EN-US',
    'pt': 'PT-PT',
}


def normalize_language_tag(tag: Optional[str]) -> str:
    """
    Normalize a language tag for comparisons and directory names.

    Examples:
        >>> normalize_language_tag('pt_BR')
        'pt-br'
        >>> normalize_language_tag(' FR ')
        'fr'
    """
    if not tag:
        return ''
    return tag.strip().lower().replace('_', '-')


def get_language_name(tag: str) -> Optional[str]:
    """
    Get the English language name for a tag.

    Examples:
        >>> get_language_name('nl')
        'Dutch'
        >>> get_language_name('pt-BR')
        'Portuguese (Brazil)'
    """
    return ALL_LANGUAGE_CODES.get(normalize_language_tag(tag))


def extract_base_language(tag: str) -> str:
    """
    Extract the base language (drop the region).

    Examples:
        >>> extract_base_language('en-GB')
        'en'
    """
    return normalize_language_tag(tag).split('-')[0]


def languages_match(tag1: str, tag2: str, strict: bool = True) -> bool:
    """
    Check if two language tags match.

    Args:
        tag1: First language tag
        tag2: Second language tag
        strict: If True, full tags must match. If False, base language match is ok.

    Examples:
        >>> languages_match('EN', 'en')
        True
        >>> languages_match('en', 'en-GB')
        False
        >>> languages_match('en', 'en-GB', strict=False)
        True
    """
    if strict:
        return normalize_language_tag(tag1) == normalize_language_tag(tag2)
    return extract_base_language(tag1) == extract_base_language(tag2)


def to_deepl_target_code(tag: str) -> str:
    """
    Convert a content language tag to a translation target code.

    Examples:
        >>> to_deepl_target_code('fr')
        'FR'
        >>> to_deepl_target_code('pt-br')
        'PT-BR'
        >>> to_deepl_target_code('en')
        'EN-US'
    """
    normalized = normalize_language_tag(tag)
    if normalized in DEEPL_TARGET_DEFAULTS:
        return DEEPL_TARGET_DEFAULTS[normalized]
    return normalized.upper()


def to_deepl_glossary_code(tag: str) -> str:
    """
    Glossaries are scoped to base languages only.

    Examples:
        >>> to_deepl_glossary_code('pt-BR')
        'pt'
    """
    return extract_base_language(tag)
