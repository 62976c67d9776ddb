"""
Core module - document model shared by every build stage

This module provides:
- frontmatter: front matter parsing and serialization
- paths: slug, language, output path and URL resolution
- meta: layered page metadata
- markdown: markdown rendering
- plan: render plans
- exceptions: fatal build errors
"""

from mdbuilder.core.exceptions import (
    BuildError,
    BrokenLinksError,
    ConfigError,
    ContentError,
    DuplicateOutputError,
    TemplateError,
)
from mdbuilder.core.frontmatter import (
    FrontMatter,
    ParsedDocument,
    format_front_matter,
    parse_front_matter,
)
from mdbuilder.core.meta import PageMeta, merge_meta
