"""Tests for mdbuilder.site.template."""

import logging
from datetime import datetime

import pytest

from mdbuilder.core.exceptions import TemplateError
from mdbuilder.site.groups import TranslationGroupIndex
from mdbuilder.site.template import (
    Placeholder,
    TemplateCache,
    TemplateRenderer,
    check_placeholders,
    inject_head,
    substitute_placeholders,
)


def fixed_clock():
    return datetime(2030, 5, 1)


@pytest.fixture
def renderer(make_config):
    return TemplateRenderer(make_config(), clock=fixed_clock)


def render(renderer, plans, plan=None, supported=("en",)):
    index = TranslationGroupIndex(plans, "https://example.com", "en", supported)
    return renderer.render(plan or plans[0], index)


class TestHeadTags:
    def test_og_image_without_twitter_image(self, renderer, make_plan):
        page = render(renderer, [make_plan("rope-jam.html", og_image="/img/og.png")])
        assert '<meta property="og:image" content="https://example.com/img/og.png" />' in page.html
        assert "twitter:image" not in page.html
        assert '<meta name="twitter:card" content="summary_large_image" />' in page.html

    def test_twitter_image_is_separate(self, renderer, make_plan):
        page = render(renderer, [make_plan("rope-jam.html", twitter_image="/img/tw.png")])
        assert '<meta name="twitter:image" content="https://example.com/img/tw.png" />' in page.html
        assert "og:image" not in page.html

    def test_missing_og_image_warns(self, renderer, make_plan, caplog):
        with caplog.at_level(logging.WARNING):
            render(renderer, [make_plan("rope-jam.html")])
        assert "Missing ogImage" in caplog.text

    def test_head_block_sits_before_head_close(self, renderer, make_plan):
        html = render(renderer, [make_plan("rope-jam.html")]).html
        head, _, _ = html.partition("</head>")
        assert '<meta name="description" content="How to break a rope jam" />' in head
        assert '<link rel="canonical" href="https://example.com/rope-jam" />' in head
        assert '<meta property="og:url" content="https://example.com/rope-jam" />' in head

    def test_canonical_uses_default_language_member(self, renderer, make_plan):
        plans = [
            make_plan("rope-jam.html"),
            make_plan("fr/blocage.html", lang="fr", translation_of="rope-jam"),
        ]
        html = render(renderer, plans, plan=plans[1], supported=("en", "fr")).html
        assert '<link rel="canonical" href="https://example.com/rope-jam" />' in html
        assert '<meta property="og:url" content="https://example.com/fr/blocage" />' in html
        assert '<link rel="alternate" href="https://example.com/rope-jam" hreflang="en" />' in html
        assert '<link rel="alternate" href="https://example.com/fr/blocage" hreflang="fr" />' in html
        assert 'hreflang="x-default"' not in html

    def test_noindex(self, renderer, make_plan):
        html = render(renderer, [make_plan("draft.html", noindex=True)]).html
        assert '<meta name="robots" content="noindex, nofollow" />' in html

    def test_values_are_escaped(self, renderer, make_plan):
        html = render(renderer, [make_plan("a.html", title='Rock & "Roll"')]).html
        assert "<title>Rock &amp; &quot;Roll&quot;</title>" in html


class TestPlaceholders:
    def test_all_placeholders_are_substituted(self, renderer, make_plan):
        html = render(renderer, [make_plan("rope-jam.html", html="<p>Pull hard.</p>")]).html
        assert '<html lang="en">' in html
        assert '<a href="/">Back</a>' in html
        assert "<main><p>Pull hard.</p></main>" in html
        assert "&copy; 2030" in html
        assert "{{" not in html

    def test_body_is_not_rescanned(self, renderer, make_plan):
        html = render(renderer, [make_plan("a.html", html="<p>{{TITLE}}</p>")]).html
        assert "<p>{{TITLE}}</p>" in html

    def test_structured_warnings(self):
        warnings = check_placeholders("<head></head>{{TITLE}}{{AUTHOR}}", "page.html")
        assert [(w.code, w.message) for w in warnings] == [
            ("missing_placeholder", "Template page.html is missing required placeholder {{BODY}}"),
            ("unknown_placeholder", "Template page.html contains unknown placeholder {{AUTHOR}}"),
        ]

    def test_unknown_tokens_are_left_alone(self):
        assert substitute_placeholders("{{AUTHOR}} {{LANG}}", {Placeholder.LANG: "fr"}) == "{{AUTHOR}} fr"

    def test_missing_placeholder_is_not_fatal(self, make_config, make_plan, site_dir):
        (site_dir / "templates" / "bare.html").write_text("<html><head></head><body></body></html>", encoding="utf-8")
        renderer = TemplateRenderer(make_config(template_path="templates/bare.html"))
        page = render(renderer, [make_plan("a.html")])
        assert {w.code for w in page.warnings} == {"missing_placeholder"}


class TestLanguageSwitcher:
    def test_links_other_languages(self, renderer, make_plan):
        plans = [
            make_plan("rope-jam.html"),
            make_plan("fr/blocage.html", lang="fr", translation_of="rope-jam"),
        ]
        html = render(renderer, plans, supported=("en", "fr")).html
        assert '<span class="language-pill is-active" title="English">EN</span>' in html
        assert 'href="/fr/blocage"' in html

    def test_single_language_has_no_switcher(self, renderer, make_plan):
        html = render(renderer, [make_plan("rope-jam.html")]).html
        assert "language-switcher" not in html


class TestTemplateSelection:
    def test_homepage_template_for_root_index(self, make_config, make_plan, site_dir):
        (site_dir / "templates" / "home.html").write_text(
            "<html><head><title>{{TITLE}}</title></head><body class=\"home\">{{BODY}}</body></html>",
            encoding="utf-8",
        )
        renderer = TemplateRenderer(make_config(homepage_template_path="templates/home.html"))
        plans = [make_plan("index.html"), make_plan("sub/index.html", slug="sub")]

        assert 'class="home"' in render(renderer, plans, plan=plans[0]).html
        assert 'class="home"' not in render(renderer, plans, plan=plans[1]).html

    def test_missing_head_close_is_fatal(self, make_config, make_plan, site_dir):
        (site_dir / "templates" / "broken.html").write_text("<html><body>{{TITLE}}{{BODY}}</body></html>", encoding="utf-8")
        renderer = TemplateRenderer(make_config(template_path="templates/broken.html"))

        with pytest.raises(TemplateError) as exc_info:
            render(renderer, [make_plan("a.html")])
        assert exc_info.value.code == "missing_head_close"

    def test_inject_head_is_case_insensitive(self):
        assert inject_head("<HEAD></HEAD>", "    <x />", "t") == "<HEAD>    <x />\n</HEAD>"


class TestTemplateCache:
    def test_cached_until_invalidated(self, tmp_path):
        template = tmp_path / "page.html"
        template.write_text("one", encoding="utf-8")
        cache = TemplateCache()

        assert cache.load(template) == "one"
        template.write_text("two", encoding="utf-8")
        assert cache.load(template) == "one"

        cache.invalidate()
        assert cache.load(template) == "two"

    def test_unreadable_template(self, tmp_path):
        with pytest.raises(TemplateError):
            TemplateCache().load(tmp_path / "missing.html")
