"""Tests for the command line entry point."""

import json

import pytest

from conftest import DEFAULT_META
from mdbuilder.cli import EXIT_BROKEN_LINKS, EXIT_BUILD_ERROR, EXIT_OK, build_parser, main


@pytest.fixture
def config_file(site_dir, write_file):
    write_file(site_dir / "content", "index.md", "---\ntitle: Home\n---\n\n# Home\n\nSee [rules](/rules).\n")
    write_file(site_dir / "content", "rules.md", "# Rules\n\nBack [home](/).\n")
    return write_file(site_dir, "mdbuilder.json", json.dumps({
        "base_url": "https://example.com",
        "template_path": "templates/page.html",
        "default_meta": DEFAULT_META,
        "max_workers": 2,
    }))


class TestParser:
    def test_serve_defaults(self):
        args = build_parser().parse_args(["serve"])
        assert args.port == 4173
        assert args.host == "127.0.0.1"
        assert args.no_watch is False

    def test_command_is_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestMain:
    def test_build(self, config_file, site_dir):
        assert main(["--config", str(config_file), "build"]) == EXIT_OK
        assert (site_dir / "docs" / "rules.html").is_file()
        assert (site_dir / "docs" / "sitemap.xml").is_file()

    def test_broken_links_exit_code(self, config_file, site_dir, write_file):
        write_file(site_dir / "content", "bad.md", "[gone](/nowhere)")
        assert main(["--config", str(config_file), "build"]) == EXIT_BROKEN_LINKS

    def test_skip_link_check(self, config_file, site_dir, write_file):
        write_file(site_dir / "content", "bad.md", "[gone](/nowhere)")
        assert main(["--config", str(config_file), "build", "--skip-link-check"]) == EXIT_OK

    def test_missing_config(self, tmp_path):
        assert main(["--config", str(tmp_path / "missing.json"), "build"]) == EXIT_BUILD_ERROR

    def test_invalid_config(self, tmp_path, write_file):
        path = write_file(tmp_path, "mdbuilder.json", json.dumps({"template_path": "page.html"}))
        assert main(["--config", str(path), "build"]) == EXIT_BUILD_ERROR

    def test_translate_without_targets(self, config_file):
        assert main(["--config", str(config_file), "translate"]) == EXIT_OK

    def test_check_links_with_root(self, tmp_path, write_file):
        root = tmp_path / "out"
        write_file(root, "index.html", '<a href="/about">About</a>')
        write_file(root, "about.html", '<a href="/">Home</a>')
        assert main(["check-links", "--root", str(root)]) == EXIT_OK

        write_file(root, "broken.html", '<a href="/missing">x</a>')
        assert main(["check-links", "--root", str(root)]) == EXIT_BROKEN_LINKS
