"""Tests for the run orchestrator.

The fetch and generation stages are replaced by small fakes that count their
calls; one end-to-end test drives the real fetcher through respx.
"""

from __future__ import annotations

import sqlite3
from typing import Any, Generator, Iterable

import httpx
import pytest
import respx

from schemaboard.crawler.fetcher import PageFetcher
from schemaboard.db.bootstrap import init_db
from schemaboard.db.connection import get_connection
from schemaboard.db.models import FetchConfig, ItemResult, RowInput, RunStatus, StageStatus
from schemaboard.db.pages import find_page_by_path, get_page
from schemaboard.db.runs import create_run, get_run, list_run_items
from schemaboard.db.runs import update_run_item as real_update_run_item
from schemaboard.errors import GenerationError, NotFoundError, PersistenceError, UpstreamFetchError
from schemaboard.pipeline import orchestrator
from schemaboard.pipeline.orchestrator import process_item, run_pipeline, summarize_items
from schemaboard.pipeline.reconciler import Reconciliation
from schemaboard.pipeline.reconciler import reconcile as real_reconcile

BASE = "https://preview.example.com"


# ---------------------------------------------------------------------------
# Fakes & fixtures
# ---------------------------------------------------------------------------

class FakeFetcher:
    def __init__(self, fail_on: Iterable[int] = ()) -> None:
        self.calls: list[str] = []
        self.fail_on = set(fail_on)

    def fetch(self, page_id: str) -> None:
        self.calls.append(page_id)
        if len(self.calls) in self.fail_on:
            raise UpstreamFetchError("Failed to fetch HTML: 500 Internal Server Error", status=500)


class FakeGenerator:
    def __init__(self, fail: bool = False) -> None:
        self.calls: list[str] = []
        self.fail = fail

    def generate(self, page_id: str) -> None:
        self.calls.append(page_id)
        if self.fail:
            raise GenerationError("Schema generation failed: 503")


@pytest.fixture()
def conn() -> Generator[sqlite3.Connection, None, None]:
    connection = get_connection(db_path=":memory:")  # type: ignore[arg-type]
    init_db(connection)
    yield connection
    connection.close()


def _rows(n: int) -> list[RowInput]:
    return [RowInput("Beer", f"/beers/{i}", "beers", "Drink Brands") for i in range(1, n + 1)]


# ---------------------------------------------------------------------------
# End-to-end
# ---------------------------------------------------------------------------

class TestRunPipeline:
    @respx.mock
    def test_single_row_end_to_end(self, conn: sqlite3.Connection) -> None:
        respx.get(f"{BASE}/ipa").mock(return_value=httpx.Response(200, text="<h1>IPA</h1>"))
        run = create_run(conn, [RowInput("Beer", "IPA", "beers", "Drink Brands")])
        generator = FakeGenerator()

        summary = run_pipeline(conn, run.id, PageFetcher(conn, FetchConfig(BASE)), generator)

        page = find_page_by_path(conn, "/ipa")
        assert page is not None
        assert page.last_html_hash is not None
        assert page.last_crawled_at is not None

        item = list_run_items(conn, run.id)[0]
        assert item.result == ItemResult.CREATED
        assert item.page_id == page.id
        assert item.html_status == StageStatus.SUCCESS
        assert item.schema_status == StageStatus.SUCCESS
        assert item.error_message is None

        assert generator.calls == [page.id]
        reloaded = get_run(conn, run.id)
        assert reloaded is not None
        assert reloaded.status == RunStatus.COMPLETED
        assert summary.status == "completed"
        assert (summary.total, summary.created, summary.errors) == (1, 1, 0)

    def test_fetch_failure_does_not_stop_run(self, conn: sqlite3.Connection) -> None:
        run = create_run(conn, _rows(5))
        fetcher = FakeFetcher(fail_on=[3])
        generator = FakeGenerator()

        summary = run_pipeline(conn, run.id, fetcher, generator)  # type: ignore[arg-type]

        items = list_run_items(conn, run.id)
        assert all(i.result == ItemResult.CREATED for i in items)
        assert [i.html_status for i in items] == [
            StageStatus.SUCCESS,
            StageStatus.SUCCESS,
            StageStatus.FAILED,
            StageStatus.SUCCESS,
            StageStatus.SUCCESS,
        ]
        assert items[2].schema_status == StageStatus.SUCCESS
        assert len(generator.calls) == 5
        assert summary.html_failed == 1
        assert summary.html_success == 4
        run_after = get_run(conn, run.id)
        assert run_after is not None
        assert run_after.status == RunStatus.COMPLETED

    def test_generation_failure_recorded(self, conn: sqlite3.Connection) -> None:
        run = create_run(conn, _rows(2))
        summary = run_pipeline(conn, run.id, FakeFetcher(), FakeGenerator(fail=True))  # type: ignore[arg-type]

        items = list_run_items(conn, run.id)
        assert all(i.html_status == StageStatus.SUCCESS for i in items)
        assert all(i.schema_status == StageStatus.FAILED for i in items)
        assert all(i.result == ItemResult.CREATED for i in items)
        assert summary.schema_failed == 2

    def test_rerun_marks_rows_updated(self, conn: sqlite3.Connection) -> None:
        first = create_run(conn, _rows(2))
        run_pipeline(conn, first.id, FakeFetcher(), FakeGenerator())  # type: ignore[arg-type]

        second = create_run(conn, _rows(2))
        summary = run_pipeline(conn, second.id, FakeFetcher(), FakeGenerator())  # type: ignore[arg-type]

        first_ids = [i.page_id for i in list_run_items(conn, first.id)]
        second_items = list_run_items(conn, second.id)
        assert all(i.result == ItemResult.UPDATED for i in second_items)
        assert [i.page_id for i in second_items] == first_ids
        assert summary.updated == 2

    def test_same_path_twice_in_one_run(self, conn: sqlite3.Connection) -> None:
        rows = [
            RowInput("Beer", "/IPA/", "beers", "Drink Brands"),
            RowInput("Beer", "ipa", "beers", "Drink Brands"),
        ]
        run = create_run(conn, rows)
        run_pipeline(conn, run.id, FakeFetcher(), FakeGenerator())  # type: ignore[arg-type]

        first, second = list_run_items(conn, run.id)
        assert first.result == ItemResult.CREATED
        assert second.result == ItemResult.UPDATED
        assert first.page_id == second.page_id

    def test_items_processed_in_row_order(self, conn: sqlite3.Connection) -> None:
        run = create_run(conn, _rows(4))
        fetcher = FakeFetcher()
        run_pipeline(conn, run.id, fetcher, FakeGenerator())  # type: ignore[arg-type]

        expected = [i.page_id for i in list_run_items(conn, run.id)]
        assert fetcher.calls == expected

    def test_run_not_found(self, conn: sqlite3.Connection) -> None:
        with pytest.raises(NotFoundError, match="Run not found"):
            run_pipeline(conn, "missing-run", FakeFetcher(), FakeGenerator())  # type: ignore[arg-type]

    def test_pipeline_level_error_marks_run_failed(
        self, conn: sqlite3.Connection, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        run = create_run(conn, _rows(1))

        def broken_list(c: sqlite3.Connection, run_id: str) -> list[Any]:
            raise PersistenceError("Failed to load run items: database is locked")

        monkeypatch.setattr(orchestrator, "list_run_items", broken_list)

        with pytest.raises(PersistenceError):
            run_pipeline(conn, run.id, FakeFetcher(), FakeGenerator())  # type: ignore[arg-type]

        reloaded = get_run(conn, run.id)
        assert reloaded is not None
        assert reloaded.status == RunStatus.FAILED


# ---------------------------------------------------------------------------
# Per-item behaviour
# ---------------------------------------------------------------------------

class TestProcessItem:
    def test_reconcile_failure_ends_row(
        self, conn: sqlite3.Connection, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def failing_reconcile(c: sqlite3.Connection, **kwargs: Any) -> Reconciliation:
            if kwargs["raw_path"] == "/beers/2":
                raise PersistenceError("Failed to create page: database is locked")
            return real_reconcile(c, **kwargs)

        monkeypatch.setattr(orchestrator, "reconcile", failing_reconcile)
        run = create_run(conn, _rows(3))
        fetcher, generator = FakeFetcher(), FakeGenerator()

        summary = run_pipeline(conn, run.id, fetcher, generator)  # type: ignore[arg-type]

        first, second, third = list_run_items(conn, run.id)
        assert second.result == ItemResult.ERROR
        assert second.error_message == "Failed to create page: database is locked"
        assert second.page_id is None
        assert second.html_status is None
        assert second.schema_status is None

        assert first.result == third.result == ItemResult.CREATED
        assert fetcher.calls == [first.page_id, third.page_id]
        assert generator.calls == [first.page_id, third.page_id]
        assert find_page_by_path(conn, "/beers/2") is None

        assert summary.errors == 1
        reloaded = get_run(conn, run.id)
        assert reloaded is not None
        assert reloaded.status == RunStatus.COMPLETED

    def test_missing_field_skips_all_stages(self, conn: sqlite3.Connection) -> None:
        run = create_run(conn, [RowInput("Beer", "/ipa", "beers", None)])
        item = list_run_items(conn, run.id)[0]
        fetcher, generator = FakeFetcher(), FakeGenerator()

        outcome = process_item(conn, item, fetcher, generator)  # type: ignore[arg-type]

        assert outcome.result == ItemResult.ERROR
        assert outcome.error_message == "Missing required field(s): category"
        assert fetcher.calls == []
        assert generator.calls == []
        assert find_page_by_path(conn, "/ipa") is None

        stored = list_run_items(conn, run.id)[0]
        assert stored.result == ItemResult.ERROR
        assert stored.page_id is None
        assert stored.html_status is None
        assert stored.schema_status is None

    def test_error_row_between_good_rows(self, conn: sqlite3.Connection) -> None:
        rows = [
            RowInput("Beer", "/a", "beers", "drink"),
            RowInput(None, "/b", "beers", "drink"),
            RowInput("Beer", "/c", "beers", "drink"),
        ]
        run = create_run(conn, rows)
        fetcher = FakeFetcher()
        summary = run_pipeline(conn, run.id, fetcher, FakeGenerator())  # type: ignore[arg-type]

        results = [i.result for i in list_run_items(conn, run.id)]
        assert results == [ItemResult.CREATED, ItemResult.ERROR, ItemResult.CREATED]
        assert len(fetcher.calls) == 2
        assert (summary.created, summary.errors) == (2, 1)

    def test_failed_status_write_keeps_result(
        self, conn: sqlite3.Connection, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def flaky_update(c: sqlite3.Connection, item_id: str, **kwargs: Any) -> None:
            if "html_status" in kwargs:
                raise PersistenceError("Failed to update run item: disk I/O error")
            real_update_run_item(c, item_id, **kwargs)

        monkeypatch.setattr(orchestrator, "update_run_item", flaky_update)
        run = create_run(conn, _rows(1))
        item = list_run_items(conn, run.id)[0]
        generator = FakeGenerator()

        outcome = process_item(conn, item, FakeFetcher(), generator)  # type: ignore[arg-type]

        assert outcome.result == ItemResult.CREATED
        assert "disk I/O error" in (outcome.error_message or "")
        assert generator.calls == []

        stored = list_run_items(conn, run.id)[0]
        assert stored.result == ItemResult.CREATED
        assert stored.page_id is not None
        assert stored.html_status is None
        assert "disk I/O error" in (stored.error_message or "")

    def test_new_page_keeps_catalog_fields(self, conn: sqlite3.Connection) -> None:
        run = create_run(conn, [RowInput("Pub", "/Pubs/The-Swan/", "pubs", "Venues")])
        item = list_run_items(conn, run.id)[0]
        outcome = process_item(conn, item, FakeFetcher(), FakeGenerator())  # type: ignore[arg-type]

        page = get_page(conn, outcome.page_id)  # type: ignore[arg-type]
        assert page is not None
        assert page.path == "/pubs/the-swan"
        assert (page.domain, page.page_type, page.category) == ("Pub", "pubs", "Venues")


class TestSummarize:
    def test_counts(self, conn: sqlite3.Connection) -> None:
        run = create_run(conn, _rows(3))
        run_pipeline(conn, run.id, FakeFetcher(fail_on=[1]), FakeGenerator())  # type: ignore[arg-type]
        summary = summarize_items(run.id, RunStatus.COMPLETED, list_run_items(conn, run.id))
        assert summary.to_dict() == {
            "run_id": run.id,
            "status": "completed",
            "total": 3,
            "created": 3,
            "updated": 0,
            "errors": 0,
            "html_success": 2,
            "html_failed": 1,
            "schema_success": 3,
            "schema_failed": 0,
        }
