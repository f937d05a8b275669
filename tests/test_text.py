"""
tests/test_text.py -- Unit tests for core/text.py.

Pure functions, no fixtures. Covers slug derivation and collision suffixes,
read-time estimation, excerpt truncation and frequency tables.
"""

from __future__ import annotations

import pytest

from core.text import count_frequencies, disambiguate_slug, make_excerpt, read_time_minutes, slugify


class TestSlugify:
    @pytest.mark.parametrize(
        ("title", "expected"),
        [
            ("Hello World", "hello-world"),
            ("  Hello, World!  ", "hello-world"),
            ("Next.js & TypeScript: A Guide", "next-js-typescript-a-guide"),
            ("Café Crème", "cafe-creme"),
            ("already-a-slug", "already-a-slug"),
            ("Multiple   spaces---and__underscores", "multiple-spaces-and-underscores"),
        ],
    )
    def test_slugify(self, title: str, expected: str) -> None:
        assert slugify(title) == expected

    def test_slugify_is_idempotent(self) -> None:
        """slugify(slugify(t)) == slugify(t)."""
        once = slugify("Getting Started with Next.js and TypeScript")
        assert slugify(once) == once

    def test_slugify_only_punctuation_is_empty(self) -> None:
        assert slugify("!!! ???") == ""


class TestDisambiguateSlug:
    def test_keeps_prefix_and_appends_timestamp(self) -> None:
        assert disambiguate_slug("hello-world", now_ms=1700000000000) == "hello-world-1700000000000"

    def test_default_suffix_is_numeric(self) -> None:
        result = disambiguate_slug("post")
        prefix, _, suffix = result.rpartition("-")
        assert prefix == "post"
        assert suffix.isdigit()


class TestReadTime:
    def test_rounds_up(self) -> None:
        assert read_time_minutes("word " * 201) == 2

    def test_exact_multiple(self) -> None:
        assert read_time_minutes("word " * 400) == 2

    def test_short_content_is_one_minute(self) -> None:
        assert read_time_minutes("just a few words") == 1

    def test_empty_content_is_zero(self) -> None:
        assert read_time_minutes("") == 0


class TestExcerpt:
    def test_short_content_returned_unchanged(self) -> None:
        assert make_excerpt("short body") == "short body"

    def test_long_content_truncated_with_ellipsis(self) -> None:
        content = "x" * 250
        excerpt = make_excerpt(content)
        assert excerpt == "x" * 200 + "..."


class TestCountFrequencies:
    def test_orders_by_count_descending(self) -> None:
        groups = [["python", "fastapi"], ["python"], ["python", "react"], ["react"]]
        result = count_frequencies(groups)
        assert result[0] == {"name": "python", "count": 3}
        assert result[1] == {"name": "react", "count": 2}
        assert result[2] == {"name": "fastapi", "count": 1}

    def test_duplicate_within_group_counts_once(self) -> None:
        assert count_frequencies([["a", "a", "a"]]) == [{"name": "a", "count": 1}]

    def test_empty_input(self) -> None:
        assert count_frequencies([]) == []
