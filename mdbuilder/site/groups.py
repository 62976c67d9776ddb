"""
Translation groups: the language variants of one page.

Plans are grouped by ``translationOf`` (falling back to the slug). For every
plan the index answers two questions:

- which output is canonical (the default-language member, else the plan itself)
- which alternate-language links the page advertises, in a stable order
"""

from dataclasses import dataclass
from typing import Dict, List, Sequence

from mdbuilder.core.paths import normalize_output_url, output_url, to_absolute_url
from mdbuilder.core.plan import RenderPlan
from mdbuilder.logger import get_logger

logger = get_logger(__name__)

X_DEFAULT = 'x-default'


@dataclass(frozen=True)
class AlternateLink:
    """A (language tag, absolute URL) pair."""
    lang: str
    href: str


class TranslationGroupIndex:
    """
    Index of render plans by translation group.

    Built once per build, after every render plan exists.
    """

    def __init__(
        self,
        plans: Sequence[RenderPlan],
        base_url: str,
        default_lang: str,
        supported_langs: Sequence[str] = (),
    ):
        self.base_url = base_url
        self.default_lang = default_lang
        self.supported_langs = list(supported_langs)
        self.groups: Dict[str, List[RenderPlan]] = {}

        for plan in sorted(plans, key=lambda p: p.relative_output):
            self.groups.setdefault(plan.group_key, []).append(plan)

        for key, members in self.groups.items():
            langs = [member.lang for member in members]
            duplicates = sorted({lang for lang in langs if langs.count(lang) > 1})
            if duplicates:
                outputs = ', '.join(member.relative_output for member in members)
                logger.warning(
                    f"Translation group '{key}' has more than one page for {', '.join(duplicates)}: {outputs}"
                )

    def group_for(self, plan: RenderPlan) -> List[RenderPlan]:
        return self.groups.get(plan.group_key) or [plan]

    def _members_by_lang(self, plan: RenderPlan) -> Dict[str, RenderPlan]:
        """One member per language; the requesting plan keeps its own slot."""
        members: Dict[str, RenderPlan] = {}
        for member in self.group_for(plan):
            members.setdefault(member.lang, member)
        members[plan.lang] = plan
        return members

    def canonical_relative(self, plan: RenderPlan) -> str:
        """Output path of the group's default-language member, else the plan's own."""
        canonical = self._members_by_lang(plan).get(self.default_lang)
        return canonical.relative_output if canonical else plan.relative_output

    def canonical_url(self, plan: RenderPlan) -> str:
        return output_url(self.canonical_relative(plan), self.base_url)

    def page_url(self, plan: RenderPlan) -> str:
        return output_url(plan.relative_output, self.base_url)

    def _lang_sort_key(self, lang: str):
        if lang == self.default_lang:
            return (0, 0, lang)
        if lang in self.supported_langs:
            return (1, self.supported_langs.index(lang), lang)
        return (2, 0, lang)

    def alternates(self, plan: RenderPlan) -> List[AlternateLink]:
        """
        Alternate links for a plan.

        Order: default language, then configured languages in configured order,
        then any other language alphabetically, then ``x-default`` pointing at
        the canonical URL.
        """
        members = self._members_by_lang(plan)
        links = [
            AlternateLink(lang=lang, href=to_absolute_url(normalize_output_url(member.relative_output), self.base_url))
            for lang, member in members.items()
        ]
        links.sort(key=lambda link: self._lang_sort_key(link.lang))
        links.append(AlternateLink(lang=X_DEFAULT, href=self.canonical_url(plan)))
        return links
