"""Tests for linkcollector.aggregator module."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from linkcollector.aggregator import build_result, build_stats, dedupe
from linkcollector.config import build_request
from linkcollector.context import CrawlContext

SEED = "https://example.com/"


def _context() -> CrawlContext:
    return CrawlContext.start(build_request(SEED))


class TestDedupe:
    def test_keeps_first_occurrence_order(self):
        assert dedupe(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]

    def test_empty(self):
        assert dedupe([]) == []


class TestBuildStats:
    def test_counters_and_duration(self):
        context = _context()
        context.pages_scanned = 3
        context.links_found = 12
        context.max_depth_reached = 1
        context.started_at = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
        context.finished_at = context.started_at + timedelta(seconds=2)
        context.finished_monotonic = context.started_monotonic + 2.5

        stats = build_stats(context)

        assert stats.start_time == "2024-05-01T12:00:00.000Z"
        assert stats.end_time == "2024-05-01T12:00:02.000Z"
        assert stats.duration_ms == 2500
        assert stats.total_urls_scanned == 3
        assert stats.total_urls_collected == 12
        assert stats.max_depth_reached == 1

    def test_unfinished_context(self):
        stats = build_stats(_context())
        assert stats.duration_ms == 0
        assert stats.start_time == stats.end_time


class TestBuildResult:
    def test_seed_never_collected(self):
        context = _context()
        context.collected.extend(["https://example.com/a", SEED, "https://example.com/a"])
        context.finish()

        result = build_result(context)

        assert result.all_collected_urls == ["https://example.com/a"]
        assert result.initial_url == SEED
        assert result.depth == 1

    def test_relationships_and_errors_copied(self):
        context = _context()
        context.record_relationship(SEED, "https://example.com/a")
        context.record_relationship(SEED, "https://example.com/a")
        context.record_error("https://example.com/a", "http", "HTTP 404 Not Found")
        context.cancelled = True
        context.finish()

        result = build_result(context)
        context.relationships.clear()

        assert len(result.link_relationships) == 1
        assert result.errors[0].to_dict() == {
            "url": "https://example.com/a",
            "errorType": "http",
            "message": "HTTP 404 Not Found",
        }
        assert result.cancelled is True
        assert result.truncated is False

    def test_to_dict_shape(self):
        context = _context()
        context.mark_visited("https://example.com/a")
        context.record_relationship(SEED, "https://example.com/a")
        context.finish()

        data = build_result(context).to_dict()

        assert data["initialUrl"] == SEED
        assert data["allCollectedUrls"] == ["https://example.com/a"]
        assert data["linkRelationships"] == [
            {"source": SEED, "found": "https://example.com/a"}
        ]
        assert set(data["stats"]) == {
            "startTime",
            "endTime",
            "durationMs",
            "totalUrlsScanned",
            "totalUrlsCollected",
            "maxDepthReached",
        }
