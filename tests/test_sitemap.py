"""Tests for mdbuilder.site.sitemap."""

from mdbuilder.site.groups import TranslationGroupIndex
from mdbuilder.site.sitemap import render_sitemap, sitemap_plans, write_sitemap

BASE_URL = "https://example.com"


def locations(xml):
    return [line.strip()[len("<loc>"):-len("</loc>")] for line in xml.splitlines() if line.strip().startswith("<loc>")]


class TestSitemap:
    def test_noindex_pages_are_excluded(self, make_plan):
        plans = [make_plan("rules.html"), make_plan("draft.html", noindex=True)]
        xml = render_sitemap(plans, TranslationGroupIndex(plans, BASE_URL, "en"), BASE_URL)
        assert locations(xml) == ["https://example.com/rules"]

    def test_sorted_by_output_with_normalized_urls(self, make_plan):
        plans = [
            make_plan("zebra.html"),
            make_plan("index.html"),
            make_plan("guides/index.html", slug="guides"),
        ]
        xml = render_sitemap(plans, TranslationGroupIndex(plans, BASE_URL, "en"), BASE_URL)
        assert locations(xml) == [
            "https://example.com/guides",
            "https://example.com/",
            "https://example.com/zebra",
        ]

    def test_duplicate_outputs_last_wins(self, make_plan):
        plans = [make_plan("rules.html"), make_plan("rules.html", noindex=True)]
        assert sitemap_plans(plans) == []

    def test_alternates_without_x_default(self, make_plan):
        plans = [
            make_plan("rules.html"),
            make_plan("fr/regles.html", lang="fr", translation_of="rules"),
        ]
        xml = render_sitemap(plans, TranslationGroupIndex(plans, BASE_URL, "en", ("en", "fr")), BASE_URL)
        assert '<xhtml:link rel="alternate" hreflang="en" href="https://example.com/rules" />' in xml
        assert '<xhtml:link rel="alternate" hreflang="fr" href="https://example.com/fr/regles" />' in xml
        assert "x-default" not in xml
        assert xml.count("<url>") == 2

    def test_document_shape(self, make_plan):
        plans = [make_plan("rules.html")]
        xml = render_sitemap(plans, TranslationGroupIndex(plans, BASE_URL, "en"), BASE_URL)
        assert xml.startswith('<?xml version="1.0" encoding="UTF-8"?>\n<urlset ')
        assert 'xmlns:xhtml="http://www.w3.org/1999/xhtml"' in xml
        assert xml.endswith("</urlset>\n")

    def test_write_sitemap(self, make_plan, tmp_path):
        path = write_sitemap([make_plan("rules.html")], tmp_path / "docs", BASE_URL)
        assert path == tmp_path / "docs" / "sitemap.xml"
        assert "<loc>https://example.com/rules</loc>" in path.read_text(encoding="utf-8")
