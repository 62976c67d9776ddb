"""Shared fixtures: a throwaway site tree, config factory, fake translation service."""

from pathlib import Path, PurePosixPath

import pytest

from mdbuilder.config import API_KEY_ENV_VAR, build_config
from mdbuilder.core.meta import PageMeta
from mdbuilder.core.plan import RenderPlan
from mdbuilder.translator.exceptions import TranslationError

DEFAULT_META = {
    "title": "Game Night",
    "description": "House rules for game night",
    "sidebarTitle": "Game Night",
    "sidebarSummary": "Everything you need to play",
    "backLinkHref": "/",
    "backLinkLabel": "Back home",
}

PAGE_TEMPLATE = """<!doctype html>
<html lang="{{LANG}}">
<head>
  <title>{{TITLE}}</title>
</head>
<body>
  <nav><a href="{{BACK_LINK_HREF}}">{{BACK_LINK_LABEL}}</a></nav>
  <aside><h2>{{SIDEBAR_TITLE}}</h2><p>{{SIDEBAR_SUMMARY}}</p></aside>
  {{LANGUAGE_SWITCHER}}
  <main>{{BODY}}</main>
  <footer>&copy; {{YEAR}}</footer>
</body>
</html>
"""


class FakeTranslationService:
    """Stands in for the translation service; prefixes text with the target language."""

    def __init__(self):
        self.calls = []
        self.glossaries = []
        self.created = []
        self.fail = False

    def translate_text(self, text, source_lang, target_lang, glossary_id=None):
        self.calls.append((text, source_lang, target_lang, glossary_id))
        if self.fail:
            raise TranslationError("service down", code="api_error")
        return f"{target_lang.upper()}:{text}"

    def list_glossaries(self):
        return list(self.glossaries)

    def create_glossary(self, name, source_lang, target_lang, entries):
        self.created.append((name, source_lang, target_lang, dict(entries)))
        return f"glossary-{len(self.created)}"


@pytest.fixture(autouse=True)
def _no_api_key(monkeypatch):
    monkeypatch.delenv(API_KEY_ENV_VAR, raising=False)


@pytest.fixture
def site_dir(tmp_path):
    (tmp_path / "content").mkdir()
    (tmp_path / "templates").mkdir()
    (tmp_path / "templates" / "page.html").write_text(PAGE_TEMPLATE, encoding="utf-8")
    return tmp_path


@pytest.fixture
def write_file():
    def write(root: Path, relative: str, text: str) -> Path:
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    return write


@pytest.fixture
def make_config(site_dir):
    def factory(**overrides):
        raw = {
            "base_url": "https://example.com",
            "template_path": "templates/page.html",
            "default_meta": dict(DEFAULT_META),
            "max_workers": 2,
        }
        raw.update(overrides)
        return build_config(raw, base_dir=site_dir)

    return factory


@pytest.fixture
def fake_service():
    return FakeTranslationService()


@pytest.fixture
def make_plan():
    def factory(
        relative_output,
        lang="en",
        slug=None,
        translation_of=None,
        noindex=False,
        og_image=None,
        twitter_image=None,
        title="Rope Jam",
        html="<p>Body</p>",
    ):
        meta = PageMeta(
            title=title,
            description="How to break a rope jam",
            sidebar_title="Rules",
            sidebar_summary="All the rules",
            back_link_href="/",
            back_link_label="Back",
            slug=slug or PurePosixPath(relative_output).stem,
            output=relative_output,
            lang=lang,
            translation_of=translation_of,
            noindex=noindex,
            og_image=og_image,
            twitter_image=twitter_image,
        )
        return RenderPlan(
            source_path=Path("/content") / relative_output.replace(".html", ".md"),
            output_path=Path("/docs") / relative_output,
            relative_output=relative_output,
            html=html,
            meta=meta,
        )

    return factory
