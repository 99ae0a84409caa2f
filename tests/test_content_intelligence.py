"""Tests for content intelligence: thin pages, metadata, duplicates, similarity."""

import random

import pytest

from site_insights.modules.content_intelligence import (
    ContentIntelligenceThresholds,
    UnionFind,
    analyze_content,
    find_duplicates,
    find_missing_meta_descriptions,
    find_missing_titles,
    find_similar_content,
    find_thin_content,
    group_similar_pages,
    keyword_set,
    similarity_score,
)
from site_insights.modules.content_intelligence.similarity import candidate_pairs
from site_insights.schemas.crawl import Keyword


def _kw(*words):
    return [{"word": w, "count": 1} for w in words]


# ===========================================================================
# 1. Thin content and missing metadata
# ===========================================================================
class TestThinContent:

    def test_scenario_critical_subset(self, make_page):
        thresholds = ContentIntelligenceThresholds(
            thin_content_words=300, critical_thin_content_words=100,
        )
        data = analyze_content([make_page("a", word_count=80)], thresholds)
        assert [p.id for p in data.thin_content] == ["a"]
        assert [p.id for p in data.critical_thin_content] == ["a"]

    def test_thinnest_first_and_boundary(self, make_page):
        pages = [
            make_page("a", word_count=299),
            make_page("b", word_count=300),
            make_page("c", word_count=12),
            make_page("d", word_count=None),
        ]
        assert [p.id for p in find_thin_content(pages, 300)] == ["c", "a"]

    def test_missing_title_and_description(self, make_page):
        pages = [
            make_page("a", title="   ", meta_description="ok"),
            make_page("b", title=None, meta_description=""),
            make_page("c", title="Fine", meta_description=None),
            make_page("d", title="Fine too", meta_description="Also fine"),
        ]
        assert [p.id for p in find_missing_titles(pages)] == ["a", "b"]
        assert [p.id for p in find_missing_meta_descriptions(pages)] == ["b", "c"]


# ===========================================================================
# 2. Exact duplicates
# ===========================================================================
class TestDuplicates:
    """Groups have at least two members and report the normalised value."""

    def test_unique_values_emit_no_group(self, make_page):
        pages = [make_page("a", title="One"), make_page("b", title="Two")]
        assert find_duplicates(pages, lambda p: p.title) == []

    def test_trimmed_case_insensitive_grouping(self, make_page):
        pages = [
            make_page("z", url="https://example.com/z", title="Garden Tools"),
            make_page("a", url="https://example.com/a", title="  garden tools "),
            make_page("m", url="https://example.com/m", title="Other"),
        ]
        groups = find_duplicates(pages, lambda p: p.title)
        assert len(groups) == 1
        assert groups[0].value == "garden tools"
        assert [p.id for p in groups[0].pages] == ["a", "z"]

    def test_blank_values_ignored(self, make_page):
        pages = [make_page("a", title=""), make_page("b", title="  "), make_page("c")]
        assert find_duplicates(pages, lambda p: p.title) == []

    def test_groups_ordered_by_size_then_value(self, make_page):
        pages = [
            make_page("1", meta_description="beta"),
            make_page("2", meta_description="beta"),
            make_page("3", meta_description="alpha"),
            make_page("4", meta_description="alpha"),
            make_page("5", meta_description="gamma"),
            make_page("6", meta_description="gamma"),
            make_page("7", meta_description="gamma"),
        ]
        groups = find_duplicates(pages, lambda p: p.meta_description)
        assert [g.value for g in groups] == ["gamma", "alpha", "beta"]
        assert all(len(g.pages) >= 2 for g in groups)


# ===========================================================================
# 3. Similarity scoring and grouping
# ===========================================================================
class TestSimilarity:
    """Jaccard scores, exact candidate filtering and union-find grouping."""

    def test_keyword_set_normalises(self):
        words = keyword_set([Keyword(word=" SEO "), Keyword(word="seo"), Keyword(word="Audit")])
        assert words == frozenset({"seo", "audit"})

    def test_score_symmetric_and_bounded(self):
        a = frozenset({"a", "b", "c"})
        b = frozenset({"b", "c", "d"})
        assert similarity_score(a, b) == similarity_score(b, a) == 50
        assert similarity_score(a, a) == 100
        assert similarity_score(a, frozenset()) == 0
        assert similarity_score(frozenset(), frozenset()) == 0

    def test_score_rounds_half_up(self):
        # 1 of 8 shared -> 12.5% -> 13
        a = frozenset({"x", "a1", "a2", "a3"})
        b = frozenset({"x", "b1", "b2", "b3", "b4"})
        assert similarity_score(a, b) == 13

    def test_candidate_pairs_never_miss_a_qualifying_pair(self):
        rng = random.Random(11)
        vocab = ["w" + str(i) for i in range(14)]
        sets = {
            str(i): frozenset(rng.sample(vocab, rng.randint(1, 8)))
            for i in range(40)
        }
        for threshold in (30, 50, 70, 90, 100):
            pairs = candidate_pairs(sets, threshold)
            ids = sorted(sets)
            for i, first in enumerate(ids):
                for second in ids[i + 1:]:
                    if similarity_score(sets[first], sets[second]) >= threshold:
                        assert (first, second) in pairs

    def test_union_find(self):
        forest = UnionFind(["c", "a", "b", "d"])
        forest.union("c", "b")
        forest.union("b", "a")
        assert forest.find("c") == "a"
        assert sorted(sorted(g) for g in forest.groups()) == [["a", "b", "c"], ["d"]]

    def test_transitive_grouping(self, make_page):
        pages = [
            make_page("a", keywords=_kw("k1", "k2", "k3", "k4")),
            make_page("b", keywords=_kw("k1", "k2", "k3", "k4", "k5")),
            make_page("c", keywords=_kw("k1", "k2", "k3", "k4", "k5", "k6")),
            make_page("d", keywords=_kw("x", "y")),
        ]
        # a~b 80, b~c 83, a~c 67 -> one group through b, min score 67
        groups = group_similar_pages(pages, threshold=70)
        assert len(groups) == 1
        similarity, members = groups[0]
        assert [p.id for p in members] == ["a", "b", "c"]
        assert similarity == 67

    def test_partition_independent_of_input_order(self, make_page):
        rng = random.Random(3)
        vocab = ["v" + str(i) for i in range(8)]
        pages = [
            make_page(str(i), keywords=_kw(*rng.sample(vocab, rng.randint(2, 5))))
            for i in range(30)
        ]

        def signature(groups):
            return sorted((sim, tuple(p.id for p in members)) for sim, members in groups)

        expected = signature(group_similar_pages(pages, 60))
        for _ in range(5):
            shuffled = pages[:]
            rng.shuffle(shuffled)
            assert signature(group_similar_pages(shuffled, 60)) == expected

    def test_groups_are_disjoint(self, make_page):
        pages = [
            make_page("a", keywords=_kw("x", "y", "z")),
            make_page("b", keywords=_kw("x", "y", "z")),
            make_page("c", keywords=_kw("p", "q")),
            make_page("d", keywords=_kw("p", "q")),
            make_page("e", keywords=[]),
        ]
        groups = find_similar_content(pages, 70)
        seen = [p.id for g in groups for p in g.pages]
        assert len(seen) == len(set(seen)) == 4
        assert all(g.similarity == 100 for g in groups)

    def test_pages_without_keywords_never_grouped(self, make_page):
        pages = [make_page("a", keywords=None), make_page("b", keywords=[])]
        assert group_similar_pages(pages) == []


# ===========================================================================
# 4. Full report
# ===========================================================================
class TestContentReport:

    def test_sample_crawl(self, sample_crawl):
        data = analyze_content(sample_crawl.pages)
        assert [p.id for p in data.thin_content] == ["gone", "shovels", "spades"]
        assert [p.id for p in data.critical_thin_content] == ["gone", "shovels"]
        assert [p.id for p in data.missing_titles] == ["gone"]
        assert [p.id for p in data.missing_meta_descriptions] == ["spades", "gone"]
        assert [(g.value, [p.id for p in g.pages]) for g in data.duplicate_titles] == [
            ("shovels", ["shovels", "spades"]),
        ]
        assert data.duplicate_descriptions == []
        assert [(g.similarity, [p.id for p in g.pages]) for g in data.similar_content] == [
            (100, ["shovels", "spades"]),
        ]
        summary = data.summary
        assert (summary.critical, summary.warnings, summary.passed, summary.total) == (2, 6, 2, 8)

    def test_empty_crawl(self):
        data = analyze_content([])
        assert data.summary.total == 0
        assert data.similar_content == []

    @pytest.mark.parametrize("kwargs", [
        {"thin_content_words": 100, "critical_thin_content_words": 200},
        {"similarity_threshold": 0},
        {"similarity_threshold": 101},
    ])
    def test_threshold_validation(self, kwargs):
        with pytest.raises(ValueError):
            ContentIntelligenceThresholds(**kwargs)
