"""
Site module - Turns render plans into the published output tree

This module provides:
- TranslationGroupIndex: canonical and alternate-language links per page
- TemplateRenderer: placeholder substitution and head injection
- Sitemap generation
- Link validation over the output tree
- SiteBuilder: the staged build pipeline
"""

from mdbuilder.site.builder import BuildResult, SiteBuilder
from mdbuilder.site.groups import X_DEFAULT, AlternateLink, TranslationGroupIndex
from mdbuilder.site.links import BrokenLink, LinkCheckReport, check_links, validate_links
from mdbuilder.site.sitemap import render_sitemap, write_sitemap
from mdbuilder.site.template import Placeholder, TemplateCache, TemplateRenderer, TemplateWarning
