"""Unit tests for chapter/section classification and canonical filenames."""

import random

from harvester.classifier import classify, get_chapter_info, get_section_priority, slugify
from harvester.config import TargetConfig
from harvester.models import Chapter, PageReference


def ref(href, text):
    return PageReference(href=href, title="", text=text, full_url="https://example.com" + href)


def simple_target(mapping=None, priority=None):
    return TargetConfig(
        name="t",
        root_url="https://example.com/a",
        base_url="https://example.com",
        chapter_mapping=mapping if mapping is not None else {"/a": Chapter(1, "A")},
        section_priority=priority if priority is not None else {"intro": 1},
    )


class TestSlugify:
    def test_lowercases_and_hyphenates(self) -> None:
        assert slugify("Rules of React") == "rules-of-react"

    def test_strips_non_alphanumeric(self) -> None:
        assert slugify("<Suspense> & use()") == "suspense-use"

    def test_collapses_whitespace_and_hyphens(self) -> None:
        assert slugify("  react -- dom   apis ") == "react-dom-apis"


class TestChapterInfo:
    def test_longest_prefix_wins(self) -> None:
        target = simple_target({
            "/reference": Chapter(1, "All"),
            "/reference/react-dom": Chapter(2, "DOM"),
        })
        assert get_chapter_info("/reference/react-dom/hooks", target) == Chapter(2, "DOM")
        assert get_chapter_info("/reference/rules", target) == Chapter(1, "All")

    def test_prefix_matches_whole_segments(self) -> None:
        target = simple_target({"/reference/react": Chapter(1, "Core")})
        chapter = get_chapter_info("/reference/react-compiler/config", target)
        assert chapter.name == "Other"

    def test_unmapped_falls_into_overflow_chapter(self) -> None:
        target = simple_target({"/a": Chapter(1, "A"), "/b": Chapter(120, "B")})
        chapter = get_chapter_info("/zzz/page", target)
        assert chapter.name == "Other"
        assert chapter.number == 121

    def test_query_and_fragment_are_ignored(self) -> None:
        target = simple_target()
        assert get_chapter_info("/a/intro#usage", target) == Chapter(1, "A")


class TestSectionPriority:
    def test_lowest_matching_keyword_wins(self) -> None:
        target = simple_target(priority={"hooks": 2, "overview": 1})
        assert get_section_priority("Hooks overview", "/a/x", target) == (1, True)

    def test_href_is_searched_too(self) -> None:
        target = simple_target(priority={"hooks": 2})
        assert get_section_priority("useState", "/a/hooks/use-state", target) == (2, True)

    def test_unmatched_sorts_after_every_keyword(self) -> None:
        target = simple_target(priority={"a1": 1, "b9": 9})
        priority, matched = get_section_priority("zeta", "/a/zeta", target)
        assert not matched
        assert priority > 9


class TestClassify:
    def test_naming_follows_priority_order(self) -> None:
        target = simple_target()
        catalog = classify([ref("/a/zeta", "Zeta"), ref("/a/intro", "Intro")], target)
        assert catalog.filename_for(ref("/a/intro", "Intro")) == "01-01-intro"
        assert catalog.filename_for(ref("/a/zeta", "Zeta")) == "01-02-zeta"

    def test_unmatched_sections_sorted_by_display_text(self) -> None:
        target = simple_target()
        refs = [ref("/a/c", "charlie"), ref("/a/b", "Bravo"), ref("/a/a", "alpha"), ref("/a/i", "Intro")]
        catalog = classify(refs, target)
        texts = [s.text for s in catalog.chapters[1].sections]
        assert texts == ["Intro", "alpha", "Bravo", "charlie"]

    def test_deterministic_for_same_reference_set(self) -> None:
        target = simple_target(
            {"/a": Chapter(1, "A"), "/b": Chapter(2, "B")}, {"intro": 1, "guide": 2}
        )
        refs = [ref(f"/{c}/{name}", name.title()) for c in "abz" for name in ("intro", "guide", "misc", "extra")]
        refs.append(ref("/a/duplicate-1", "Same"))
        refs.append(ref("/a/duplicate-2", "Same"))
        first = classify(refs, target)
        shuffled = list(refs)
        random.Random(7).shuffle(shuffled)
        second = classify(shuffled, target)
        assert [first.filename_for(r) for r in refs] == [second.filename_for(r) for r in refs]

    def test_filenames_are_unique(self) -> None:
        target = simple_target()
        refs = [ref("/a/x", "Same"), ref("/a/y", "Same"), ref("/q/x", "Same")]
        catalog = classify(refs, target)
        names = {catalog.filename_for(r) for r in refs}
        assert len(names) == 3

    def test_chapters_sorted_with_overflow_last(self) -> None:
        target = simple_target({"/a": Chapter(2, "A"), "/b": Chapter(1, "B")})
        catalog = classify([ref("/zz/1", "One"), ref("/a/1", "Two"), ref("/b/1", "Three")], target)
        assert list(catalog.chapters) == [1, 2, 99]
        assert catalog.chapters[99].info.name == "Other"

    def test_duplicate_references_classified_once(self) -> None:
        target = simple_target()
        catalog = classify([ref("/a/intro", "Intro"), ref("/a/intro", "Intro")], target)
        assert len(catalog.chapters[1].sections) == 1
        assert catalog.references() == [ref("/a/intro", "Intro")]

    def test_references_in_chapter_then_section_order(self) -> None:
        target = simple_target({"/a": Chapter(2, "A"), "/b": Chapter(1, "B")}, {"intro": 1})
        refs = [ref("/a/zeta", "Zeta"), ref("/b/x", "X"), ref("/a/intro", "Intro"), ref("/zz/y", "Y")]
        catalog = classify(refs, target)
        assert [r.text for r in catalog.references()] == ["X", "Intro", "Zeta", "Y"]
