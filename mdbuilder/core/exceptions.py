"""
Build Exceptions

Fatal errors raised by the build pipeline. Every class carries an optional
machine-readable code and a details dict so the CLI and the preview server can
report them without parsing messages.
"""

from typing import Any, Dict, List, Optional


class BuildError(Exception):
    """Fatal build error with optional code and details."""

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details or {}


class ConfigError(BuildError):
    """Missing or invalid configuration; raised before any work starts."""


class ContentError(BuildError):
    """Content that cannot be built (conflicting outputs, broken templates)."""


class DuplicateOutputError(ContentError):
    """Two or more source documents resolve to the same output path."""

    def __init__(self, conflicts: Dict[str, List[str]]):
        lines = [
            f"- {output} <- {', '.join(sources)}"
            for output, sources in sorted(conflicts.items())
        ]
        super().__init__(
            "Duplicate output paths found:\n" + "\n".join(lines),
            code="duplicate_output",
            details={"conflicts": conflicts},
        )
        self.conflicts = conflicts


class TemplateError(ContentError):
    """Template cannot receive the generated head block."""


class BrokenLinksError(BuildError):
    """Aggregated link-check failure, raised after the whole tree was scanned."""

    def __init__(self, message: str, broken: list):
        super().__init__(message, code="broken_links", details={"count": len(broken)})
        self.broken = broken
