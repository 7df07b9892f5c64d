"""Tests for result_merger.py — URL normalization, duplicate rules, merge ordering."""

import pytest

from federated_search.application.search.result_merger import (
    DedupConfig,
    are_duplicates,
    deduplicate_results,
    jaccard_similarity,
    merge_results,
    normalize_url,
    sort_results,
)
from federated_search.domain.entities import SourceType

# ============================================================
# URL normalization
# ============================================================


class TestNormalizeUrl:
    def test_scheme_host_case_and_www(self):
        assert normalize_url("https://www.Example.com/path/") == "example.com/path"
        assert normalize_url("http://example.com/path") == "example.com/path"

    def test_keeps_query_string(self):
        assert normalize_url("https://example.com/search?q=rust") == "example.com/search?q=rust"

    def test_keeps_explicit_port(self):
        assert normalize_url("http://localhost:8080/") == "localhost:8080"

    def test_only_one_trailing_slash_removed(self):
        assert normalize_url("https://example.com/a//") == "example.com/a/"

    def test_unparseable_falls_back_to_lowercase(self):
        assert normalize_url("Not A URL") == "not a url"


class TestJaccard:
    def test_identical(self):
        assert jaccard_similarity("Rust Async", "rust async") == 1.0

    def test_partial(self):
        assert jaccard_similarity("a b c", "b c d") == pytest.approx(0.5)

    def test_both_empty(self):
        assert jaccard_similarity("", "") == 1.0
        assert jaccard_similarity("  ", "") == 1.0

    def test_one_empty(self):
        assert jaccard_similarity("", "rust") == 0.0
        assert jaccard_similarity("rust", "") == 0.0


# ============================================================
# Duplicate rules
# ============================================================


class TestAreDuplicates:
    def test_same_normalized_url(self, make_result):
        a = make_result("One", "https://www.example.com/x/", SourceType.GITHUB)
        b = make_result("Two", "http://example.com/x", SourceType.REDDIT)
        assert are_duplicates(a, b)

    def test_same_source_similar_title(self, make_result):
        a = make_result("tokio async runtime for rust apps", "https://a.com/1", SourceType.GITHUB)
        b = make_result("Tokio async runtime for Rust apps", "https://b.com/2", SourceType.GITHUB)
        assert are_duplicates(a, b)

    def test_similar_title_across_sources_is_not_enough(self, make_result):
        a = make_result("tokio async runtime", "https://a.com/1", SourceType.GITHUB,
                        description="an async runtime for rust")
        b = make_result("tokio async runtime", "https://b.com/2", SourceType.REDDIT,
                        description="weekly discussion thread")
        assert not are_duplicates(a, b)

    def test_same_title_both_descriptions_empty(self, make_result):
        a = make_result("Tokio", "https://a.com/1", SourceType.GITHUB)
        b = make_result("tokio", "https://b.com/2", SourceType.REDDIT)
        assert are_duplicates(a, b)

    def test_same_title_one_description_empty(self, make_result):
        a = make_result("Tokio", "https://a.com/1", SourceType.GITHUB, description="an async runtime")
        b = make_result("tokio", "https://b.com/2", SourceType.REDDIT)
        assert not are_duplicates(a, b)

    def test_same_title_and_similar_description(self, make_result):
        a = make_result("Tokio", "https://a.com/1", SourceType.GITHUB,
                        description="an async runtime for rust")
        b = make_result("tokio", "https://b.com/2", SourceType.REDDIT,
                        description="An async runtime for Rust")
        assert are_duplicates(a, b)

    def test_thresholds_are_configurable(self, make_result):
        a = make_result("a b c d", "https://a.com/1", SourceType.GITHUB)
        b = make_result("a b c e", "https://b.com/2", SourceType.GITHUB)
        # jaccard = 3/5
        assert not are_duplicates(a, b)
        assert are_duplicates(a, b, DedupConfig(title_threshold=0.5))


class TestDeduplicate:
    def test_keeps_higher_score_in_place(self, make_result):
        low = make_result("Low", "https://example.com/x", SourceType.GITHUB, score=0.3)
        other = make_result("Other", "https://example.com/y", SourceType.GITHUB, score=0.9)
        high = make_result("High", "https://www.example.com/x/", SourceType.REDDIT, score=0.8)
        deduped = deduplicate_results([low, other, high])
        assert deduped == [high, other]

    def test_tie_prefers_longer_description(self, make_result):
        short = make_result("A", "https://example.com/x", description="short", score=0.5)
        longer = make_result("B", "https://example.com/x", description="much longer text", score=0.5)
        assert deduplicate_results([short, longer]) == [longer]

    def test_full_tie_keeps_first(self, make_result):
        first = make_result("A", "https://example.com/x", description="same", score=0.5)
        second = make_result("B", "https://example.com/x", description="same", score=0.5)
        assert deduplicate_results([first, second]) == [first]

    def test_none_score_counts_as_zero(self, make_result):
        unscored = make_result("A", "https://example.com/x", score=None)
        scored = make_result("B", "https://example.com/x", score=0.1)
        assert deduplicate_results([unscored, scored]) == [scored]

    def test_replacement_absorbs_later_duplicates(self, make_result):
        a = make_result("a", "https://x.com/a", SourceType.GITHUB, score=0.5)
        b = make_result("rust async runtime tokio", "https://y.com/b", SourceType.GITHUB, score=0.4)
        c = make_result("rust async runtime tokio", "https://x.com/a/", SourceType.GITHUB, score=0.9)
        # c replaces a by URL, then matches b by title
        assert deduplicate_results([a, b, c]) == [c]

    def test_absorbed_entry_can_win(self, make_result):
        a = make_result("a", "https://x.com/a", SourceType.GITHUB, score=0.1)
        b = make_result("rust async runtime tokio", "https://y.com/b", SourceType.GITHUB, score=0.8)
        c = make_result("rust async runtime tokio", "https://x.com/a/", SourceType.GITHUB, score=0.5)
        assert deduplicate_results([a, b, c]) == [b]

    def test_absorbing_keeps_other_entries_in_order(self, make_result):
        first = make_result("first", "https://z.com/1", SourceType.REDDIT, score=0.3)
        a = make_result("a", "https://x.com/a", SourceType.GITHUB, score=0.5)
        middle = make_result("middle", "https://z.com/2", SourceType.REDDIT, score=0.3)
        b = make_result("rust async runtime tokio", "https://y.com/b", SourceType.GITHUB, score=0.4)
        last = make_result("last", "https://z.com/3", SourceType.REDDIT, score=0.3)
        c = make_result("rust async runtime tokio", "https://x.com/a/", SourceType.GITHUB, score=0.9)
        assert deduplicate_results([first, a, middle, b, last, c]) == [first, c, middle, last]


# ============================================================
# Merge
# ============================================================


class TestMergeResults:
    def test_sorted_by_score_then_recency(self, make_result):
        old = make_result("Old", score=0.7, timestamp="2020-01-01T00:00:00Z")
        new = make_result("New", score=0.7, timestamp="2024-01-01T00:00:00Z")
        undated = make_result("Undated", score=0.7)
        best = make_result("Best", score=0.9)
        merged = merge_results([[old, undated], [new, best]])
        assert [r.title for r in merged] == ["Best", "New", "Old", "Undated"]

    def test_no_duplicates_survive(self, make_result):
        lists = [
            [make_result("A", "https://example.com/1", SourceType.GITHUB, score=0.4)],
            [make_result("A copy", "https://www.example.com/1/", SourceType.HACKERNEWS, score=0.6)],
            [make_result("B", "https://example.com/2", SourceType.REDDIT, score=0.5)],
        ]
        merged = merge_results(lists)
        assert [r.title for r in merged] == ["A copy", "B"]

    def test_deterministic(self, make_result):
        lists = [
            [make_result("A", score=0.5), make_result("B", score=0.5)],
            [make_result("C", score=0.5)],
        ]
        first = [r.id for r in merge_results(lists)]
        second = [r.id for r in merge_results(lists)]
        assert first == second

    def test_empty_descriptions_collapse_same_title(self, make_result):
        lists = [
            [make_result("Tokio", "https://github.com/tokio-rs/tokio", SourceType.GITHUB, score=0.7)],
            [make_result("tokio", "https://reddit.com/r/rust/1", SourceType.REDDIT, score=0.6)],
        ]
        merged = merge_results(lists)
        assert len(merged) == 1
        assert merged[0].source is SourceType.GITHUB

    def test_idempotent_after_chained_replacement(self, make_result):
        lists = [
            [make_result("a", "https://x.com/a", SourceType.GITHUB, score=0.5)],
            [make_result("rust async runtime tokio", "https://y.com/b", SourceType.GITHUB, score=0.4)],
            [make_result("rust async runtime tokio", "https://x.com/a/", SourceType.GITHUB, score=0.9)],
        ]
        once = merge_results(lists)
        assert [(r.title, r.score) for r in once] == [("rust async runtime tokio", 0.9)]
        assert merge_results([once]) == once

    def test_idempotent_on_mixed_lists(self, make_result):
        lists = [
            [
                make_result("tokio-rs/tokio", "https://github.com/tokio-rs/tokio", SourceType.GITHUB, score=0.9),
                make_result("async-std", "https://github.com/async-rs/async-std", SourceType.GITHUB, score=0.7),
                make_result("tokio rs tokio", "https://mirror.test/tokio", SourceType.GITHUB, score=0.3),
            ],
            [
                make_result("Tokio 1.0", "https://www.github.com/tokio-rs/tokio/", SourceType.HACKERNEWS, score=0.95),
                make_result("Async Rust", "https://news.test/1", SourceType.HACKERNEWS,
                            description="the state of async rust", score=0.6),
            ],
            [
                make_result("async rust", "https://reddit.com/r/rust/2", SourceType.REDDIT,
                            description="The state of async Rust", score=0.4, timestamp="2025-01-01T00:00:00Z"),
                make_result("Undated", "https://reddit.com/r/rust/3", SourceType.REDDIT, score=0.4),
            ],
        ]
        once = merge_results(lists)
        assert [r.id for r in merge_results([once])] == [r.id for r in once]
        for i, left in enumerate(once):
            for right in once[i + 1:]:
                assert not are_duplicates(left, right)

    def test_empty(self):
        assert merge_results([]) == []
        assert merge_results([[], []]) == []

    def test_sort_results_is_stable_for_ties(self, make_result):
        a = make_result("A", score=0.5)
        b = make_result("B", score=0.5)
        assert sort_results([a, b]) == [a, b]
