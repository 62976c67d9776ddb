import copy
import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from mdbuilder import language_codes as lc
from mdbuilder.core.exceptions import ConfigError
from mdbuilder.logger import get_logger

logger = get_logger(__name__)

CONFIG_FILE_NAME = "mdbuilder.json"
API_KEY_ENV_VAR = "DEEPL_API_KEY"

# Fields every page needs; front matter may override them per document
REQUIRED_DEFAULT_META_FIELDS = (
    "title",
    "description",
    "sidebarTitle",
    "sidebarSummary",
    "backLinkHref",
    "backLinkLabel",
)
OPTIONAL_DEFAULT_META_FIELDS = ("ogImage", "twitterImage")

DEFAULT_MARKDOWN_EXTENSIONS = ["extra", "toc", "sane_lists"]

# Default configuration template
DEFAULT_CONFIG = {
    "content_dir": "content",
    "output_dir": "docs",
    "base_url": "",
    "template_path": "",
    "homepage_template_path": None,
    "default_meta": {},
    "translations": {
        "enabled": True,
        "api_key": "",
        "api_url": None,  # None => derived from the key (free vs pro endpoint)
        "timeout": 30,
        "default_lang": "en",
        "supported_langs": [],
        "target_languages": [],
        "custom_glossary": {},
    },
    "markdown": {
        "extensions": DEFAULT_MARKDOWN_EXTENSIONS,
        "extension_configs": {},
    },
    "utm_params": {},
    "skip_link_check": False,
    "clean": False,
    "max_workers": 8,
    "log_mode": "info",
    "log_file": None,
}


@dataclass(frozen=True)
class TranslationConfig:
    """Machine translation settings."""
    enabled: bool = True
    api_key: str = ""
    api_url: Optional[str] = None
    timeout: float = 30
    default_lang: str = "en"
    supported_langs: Tuple[str, ...] = ("en",)
    target_languages: Tuple[str, ...] = ()
    custom_glossary: Dict[str, Dict[str, str]] = field(default_factory=dict)


@dataclass(frozen=True)
class BuilderConfig:
    """Fully resolved build configuration."""
    content_dir: Path
    output_dir: Path
    base_url: str
    template_path: Path
    default_meta: Dict[str, str]
    translations: TranslationConfig = field(default_factory=TranslationConfig)
    homepage_template_path: Optional[Path] = None
    markdown_extensions: Tuple[str, ...] = tuple(DEFAULT_MARKDOWN_EXTENSIONS)
    markdown_extension_configs: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    utm_params: Dict[str, str] = field(default_factory=dict)
    skip_link_check: bool = False
    clean: bool = False
    max_workers: int = 8
    log_mode: str = "info"
    log_file: Optional[Path] = None

    @property
    def default_lang(self) -> str:
        return self.translations.default_lang

    @property
    def supported_langs(self) -> Tuple[str, ...]:
        return self.translations.supported_langs


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge override into a copy of base; nested dicts are merged, everything else replaced."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _resolve_path(value: Optional[str], base_dir: Path) -> Optional[Path]:
    if not value:
        return None
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = base_dir / path
    return path.resolve()


def validate_config(raw: Dict[str, Any]) -> None:
    """
    Validate that the required configuration is present.

    Args:
        raw: Configuration dictionary (already merged over DEFAULT_CONFIG)

    Raises:
        ConfigError: If configuration is invalid or missing, with code and details.
    """
    base_url = raw.get("base_url")
    if not base_url or not isinstance(base_url, str):
        raise ConfigError(
            "base_url is not configured",
            code="config_missing",
            details={"missing_field": "base_url"},
        )
    if not base_url.startswith(("http://", "https://")):
        raise ConfigError(
            f"base_url must be an absolute http(s) URL, got '{base_url}'",
            code="config_invalid",
            details={"field": "base_url", "value": base_url},
        )

    if not raw.get("template_path"):
        raise ConfigError(
            "template_path is not configured",
            code="config_missing",
            details={"missing_field": "template_path"},
        )

    default_meta = raw.get("default_meta")
    if not isinstance(default_meta, dict):
        raise ConfigError(
            "default_meta must be an object",
            code="config_invalid",
            details={"field": "default_meta"},
        )
    missing = [name for name in REQUIRED_DEFAULT_META_FIELDS if not isinstance(default_meta.get(name), str)]
    if missing:
        raise ConfigError(
            f"default_meta is missing required fields: {', '.join(missing)}",
            code="config_missing",
            details={"missing_field": "default_meta", "fields": missing},
        )

    translations = raw.get("translations") or {}
    targets = translations.get("target_languages", [])
    if not isinstance(targets, list) or not all(isinstance(t, str) and t.strip() for t in targets):
        raise ConfigError(
            "translations.target_languages must be a list of language tags",
            code="config_invalid",
            details={"field": "translations.target_languages"},
        )

    workers = raw.get("max_workers")
    if not isinstance(workers, int) or workers < 1:
        raise ConfigError(
            "max_workers must be a positive integer",
            code="config_invalid",
            details={"field": "max_workers", "value": workers},
        )


def _build_translation_config(raw: Dict[str, Any]) -> TranslationConfig:
    default_lang = lc.normalize_language_tag(raw.get("default_lang")) or "en"

    supported: List[str] = [default_lang]
    for tag in raw.get("supported_langs") or []:
        normalized = lc.normalize_language_tag(tag)
        if normalized and normalized not in supported:
            supported.append(normalized)

    targets: List[str] = []
    for tag in raw.get("target_languages") or []:
        normalized = lc.normalize_language_tag(tag)
        if not normalized or lc.languages_match(normalized, default_lang):
            continue
        if normalized not in targets:
            targets.append(normalized)
        # Generated documents live under their language directory
        if normalized not in supported:
            supported.append(normalized)

    glossary = {
        lc.normalize_language_tag(lang): dict(entries)
        for lang, entries in (raw.get("custom_glossary") or {}).items()
        if isinstance(entries, dict)
    }

    api_key = os.environ.get(API_KEY_ENV_VAR) or raw.get("api_key") or ""

    return TranslationConfig(
        enabled=bool(raw.get("enabled", True)),
        api_key=api_key,
        api_url=raw.get("api_url"),
        timeout=raw.get("timeout") or 30,
        default_lang=default_lang,
        supported_langs=tuple(supported),
        target_languages=tuple(targets),
        custom_glossary=glossary,
    )


def build_config(raw: Dict[str, Any], base_dir: Optional[Path] = None) -> BuilderConfig:
    """
    Build a BuilderConfig from a raw configuration dictionary.

    Args:
        raw: User configuration (merged over DEFAULT_CONFIG here)
        base_dir: Directory relative paths are resolved against (default: cwd)

    Returns:
        BuilderConfig

    Raises:
        ConfigError: If configuration is invalid or missing.
    """
    base_dir = Path(base_dir or Path.cwd())
    merged = _deep_merge(DEFAULT_CONFIG, raw)
    validate_config(merged)

    default_meta = {
        key: str(value)
        for key, value in merged["default_meta"].items()
        if key in REQUIRED_DEFAULT_META_FIELDS + OPTIONAL_DEFAULT_META_FIELDS and value is not None
    }
    markdown_config = merged.get("markdown") or {}

    return BuilderConfig(
        content_dir=_resolve_path(merged["content_dir"], base_dir),
        output_dir=_resolve_path(merged["output_dir"], base_dir),
        base_url=merged["base_url"],
        template_path=_resolve_path(merged["template_path"], base_dir),
        homepage_template_path=_resolve_path(merged.get("homepage_template_path"), base_dir),
        default_meta=default_meta,
        translations=_build_translation_config(merged.get("translations") or {}),
        markdown_extensions=tuple(markdown_config.get("extensions") or DEFAULT_MARKDOWN_EXTENSIONS),
        markdown_extension_configs=dict(markdown_config.get("extension_configs") or {}),
        utm_params={str(k): str(v) for k, v in (merged.get("utm_params") or {}).items()},
        skip_link_check=bool(merged.get("skip_link_check")),
        clean=bool(merged.get("clean")),
        max_workers=merged["max_workers"],
        log_mode=merged.get("log_mode") or "info",
        log_file=_resolve_path(merged.get("log_file"), base_dir),
    )


def load_config(config_path: Optional[Path] = None) -> BuilderConfig:
    """
    Load the configuration from a JSON file.

    Args:
        config_path: Path to the config file (default: ./mdbuilder.json)

    Raises:
        ConfigError: If the file is missing, unreadable or invalid.
    """
    path = Path(config_path) if config_path else Path.cwd() / CONFIG_FILE_NAME
    if not path.exists():
        raise ConfigError(
            f"Config file not found: {path}",
            code="config_missing",
            details={"path": str(path)},
        )

    try:
        with open(path, 'r', encoding='utf-8') as f:
            raw = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(
            f"Failed to parse config file {path}: {e}",
            code="config_invalid",
            details={"path": str(path)},
        ) from e

    if not isinstance(raw, dict):
        raise ConfigError(
            f"Config file {path} must contain a JSON object",
            code="config_invalid",
            details={"path": str(path)},
        )

    config = build_config(raw, base_dir=path.resolve().parent)
    logger.debug(f"Configuration loaded from {path}")
    return config
