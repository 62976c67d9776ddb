"""Tests for mdbuilder.site.links."""

import pytest

from mdbuilder.core.exceptions import BrokenLinksError
from mdbuilder.site.links import (
    candidate_paths,
    check_links,
    is_ignored,
    split_href,
    validate_links,
)


def page(body):
    return f"<!doctype html><html><head><title>t</title></head><body>{body}</body></html>"


@pytest.fixture
def docs(tmp_path, write_file):
    root = tmp_path / "docs"
    write_file(root, "index.html", page('<h2 id="welcome">Welcome</h2>'))
    write_file(root, "about.html", page('<h2 id="team">Team</h2>'))
    write_file(root, "guides/index.html", page("Guides"))
    write_file(root, "img/logo.png", "png")
    write_file(root, "house-rules/sibling.html", page("Sibling"))
    return root


class TestCheckLinks:
    def test_missing_anchor_is_one_broken_link(self, docs, write_file):
        write_file(docs, "faq.html", page('<h2 id="present">Present</h2><a href="#present">ok</a><a href="#missing-anchor">x</a>'))

        report = check_links(docs)
        broken = [link for link in report.broken if link.source == "faq.html"]
        assert len(broken) == 1
        assert broken[0].href == "#missing-anchor"
        assert broken[0].reason == "missing_anchor"

    def test_anchor_match_is_normalized(self, docs, write_file):
        write_file(docs, "faq.html", page('<h2 id="Get-In-Touch">x</h2><a href="#get-in-touch">ok</a>'))
        assert check_links(docs).ok

    def test_resolution_variations(self, docs, write_file):
        write_file(docs, "house-rules/rope-jam.html", page(
            '<a href="/about">a</a>'
            '<a href="/about.html#team">b</a>'
            '<a href="/guides/">c</a>'
            '<a href="guides">d</a>'
            '<a href="img/logo.png">e</a>'
            '<a href="../about.html?x=1">f</a>'
            '<a href="sibling.html">g</a>'
            '<a href="/">h</a>'
        ))
        report = check_links(docs)
        assert report.ok, [link.describe() for link in report.broken]
        assert report.checked_links == 8

    def test_missing_targets(self, docs, write_file):
        write_file(docs, "house-rules/rope-jam.html", page(
            '<a href="/nowhere">a</a><a href="../missing.html">b</a><a href="/about#nobody">c</a>'
        ))
        broken = check_links(docs).broken
        assert [(link.href, link.resolved) for link in broken] == [
            ("/nowhere", "nowhere"),
            ("../missing.html", "missing.html"),
            ("/about#nobody", "nobody"),
        ]

    def test_skipped_references(self, docs, write_file):
        write_file(docs, "contact.html", page(
            '<a href="mailto:a@b.org">m</a><a href="tel:123">t</a><a href="https://other.org/x">h</a>'
            '<a href="//cdn.example.com/x.js">p</a><a data-email-link href="#">e</a><a href="javascript:void(0)">j</a>'
        ))
        report = check_links(docs)
        assert report.ok
        assert report.checked_links == 0

    def test_link_tags_are_checked(self, docs, write_file):
        write_file(docs, "styled.html", '<html><head><link rel="stylesheet" href="/css/site.css" /></head></html>')
        assert [link.href for link in check_links(docs).broken] == ["/css/site.css"]

    def test_traversal_above_filesystem_root_is_broken(self, docs, write_file):
        write_file(docs, "deep/page.html", page('<a href="../../../../../../../../">up</a>'))

        broken = check_links(docs).broken
        assert len(broken) == 1
        assert broken[0].source == "deep/page.html"
        assert broken[0].reason == "missing"

    def test_overlong_path_segment_is_broken(self, docs, write_file):
        long_href = "/" + "a" * 300
        write_file(docs, "long.html", page(f'<a href="{long_href}">long</a>'))

        broken = check_links(docs).broken
        assert [link.href for link in broken] == [long_href]

    def test_empty_tree(self, tmp_path):
        report = check_links(tmp_path / "empty")
        assert report.ok
        assert report.scanned_files == 0


class TestValidateLinks:
    def test_raises_with_every_broken_link(self, docs, write_file):
        write_file(docs, "a.html", page('<a href="/x">x</a>'))
        write_file(docs, "b.html", page('<a href="/y">y</a>'))

        with pytest.raises(BrokenLinksError) as exc_info:
            validate_links(docs)
        assert len(exc_info.value.broken) == 2
        assert "- /x from a.html -> missing x" in str(exc_info.value)
        assert "- /y from b.html -> missing y" in str(exc_info.value)

    def test_passes(self, docs):
        assert validate_links(docs).ok


class TestResolution:
    def test_bare_relative_tries_root_first(self, tmp_path):
        root = tmp_path / "docs"
        page_path = root / "sub" / "page.html"
        assert candidate_paths("img/a.png", page_path, root) == [root / "img" / "a.png", root / "sub" / "img" / "a.png"]

    def test_absolute_only_against_root(self, tmp_path):
        root = tmp_path / "docs"
        assert candidate_paths("/a/b", root / "sub" / "page.html", root) == [root / "a" / "b"]

    def test_parent_traversal_only_against_page(self, tmp_path):
        root = tmp_path / "docs"
        assert candidate_paths("../a.html", root / "sub" / "page.html", root) == [root / "a.html"]

    def test_split_href(self):
        assert split_href("/a%20b.html?x=1#Top") == ("/a b.html", "Top")

    def test_is_ignored(self):
        assert is_ignored("#")
        assert is_ignored("HTTPS://example.com")
        assert not is_ignored("#top")
        assert not is_ignored("about.html")
