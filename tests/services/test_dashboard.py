"""
Tests for the dashboard query planner: filters, ordering, pagination, revenue.
"""

from datetime import datetime, timedelta, timezone

import pytest

from passgate.core.config import Settings
from passgate.core.exceptions import ValidationError
from passgate.services.reporting.dashboard import (
    DashboardPlanner,
    DashboardQuery,
    clamp_int,
    parse_bound,
)
from tests.utils.factories import BASE_TIME, seed_registration


@pytest.fixture
def settings() -> Settings:
    return Settings(QR_SECRET_KEY="k", JWT_SECRET="j")


@pytest.fixture
def festival(store):
    """Nine passes: P1..P9, P5 has a pending payment, amounts are 100 * index."""
    for i in range(1, 10):
        seed_registration(
            store, i,
            amount=100 * i,
            payment_status="pending" if i == 5 else "success",
            pass_type="group_events" if i % 3 == 0 else "day_pass",
        )
    return store


class TestQueryParsing:
    def test_defaults(self, settings):
        query = DashboardQuery.from_params({}, settings)

        assert query.mode == "operations"
        assert query.format == "json"
        assert query.page == 1
        assert query.page_size == settings.DASHBOARD_PAGE_SIZE
        assert query.include_metrics is True
        assert query.include_archived is False

    def test_page_size_caps(self, settings):
        json_query = DashboardQuery.from_params({"pageSize": "5000"}, settings)
        csv_query = DashboardQuery.from_params({"pageSize": "5000", "format": "csv"}, settings)

        assert json_query.page_size == settings.DASHBOARD_MAX_PAGE_SIZE
        assert csv_query.page_size == settings.EXPORT_MAX_PAGE_SIZE

    def test_garbage_numbers_fall_back(self, settings):
        query = DashboardQuery.from_params({"page": "abc", "pageSize": "-3"}, settings)
        assert query.page == 1
        assert query.page_size == 1

    def test_unknown_mode_is_operations(self, settings):
        assert DashboardQuery.from_params({"mode": "everything"}, settings).mode == "operations"
        assert DashboardQuery.from_params({"mode": "FINANCIAL"}, settings).is_financial

    def test_flags(self, settings):
        query = DashboardQuery.from_params({"includeMetrics": "0", "includeArchived": "1"}, settings)
        assert query.include_metrics is False
        assert query.include_archived is True

    def test_bare_date_upper_bound_covers_day(self):
        bound = parse_bound("2026-02-10", "to", end_of_day=True)
        assert bound > datetime(2026, 2, 10, 23, 59, tzinfo=timezone.utc)

    def test_invalid_date_rejected(self, settings):
        with pytest.raises(ValidationError):
            DashboardQuery.from_params({"from": "yesterday-ish"}, settings)

    def test_clamp_int(self):
        assert clamp_int("7", 1, 1, 5) == 5
        assert clamp_int(None, 3, 1, 5) == 3


class TestPagination:
    @pytest.mark.asyncio
    async def test_newest_first(self, festival, settings):
        planner = DashboardPlanner(festival, settings)
        result = await planner.run(DashboardQuery(page_size=3, include_metrics=False))

        assert [r.pass_id for r in result.records] == ["P9", "P8", "P7"]
        assert result.next_cursor == "P7"
        assert result.total_filtered == 9

    @pytest.mark.asyncio
    async def test_cursor_walk_has_no_gaps_or_duplicates(self, festival, settings):
        planner = DashboardPlanner(festival, settings)
        seen = []
        cursor = None
        for _ in range(10):
            result = await planner.run(DashboardQuery(page_size=2, cursor=cursor, include_metrics=False))
            seen.extend(r.pass_id for r in result.records)
            cursor = result.next_cursor
            if cursor is None:
                break

        # P5 has no successful payment and is dropped by the join
        assert seen == ["P9", "P8", "P7", "P6", "P4", "P3", "P2", "P1"]

    @pytest.mark.asyncio
    async def test_cursor_echoes_page_one(self, festival, settings):
        result = await DashboardPlanner(festival, settings).run(
            DashboardQuery(page=4, page_size=2, cursor="P8", include_metrics=False)
        )
        assert result.page == 1
        assert [r.pass_id for r in result.records] == ["P7", "P6"]

    @pytest.mark.asyncio
    async def test_unknown_cursor_starts_at_first_page(self, festival, settings):
        result = await DashboardPlanner(festival, settings).run(
            DashboardQuery(page_size=2, cursor="missing", include_metrics=False)
        )
        assert [r.pass_id for r in result.records] == ["P9", "P8"]

    @pytest.mark.asyncio
    async def test_page_numbers(self, festival, settings):
        result = await DashboardPlanner(festival, settings).run(
            DashboardQuery(page=5, page_size=2, include_metrics=False)
        )
        assert [r.pass_id for r in result.records] == ["P1"]
        assert result.next_cursor is None

    @pytest.mark.asyncio
    async def test_equal_timestamps_break_ties_by_id(self, store, settings):
        for i in (1, 2, 3):
            seed_registration(store, i, created_at=BASE_TIME)
        planner = DashboardPlanner(store, settings)

        first = await planner.run(DashboardQuery(page_size=2, include_metrics=False))
        second = await planner.run(DashboardQuery(page_size=2, cursor=first.next_cursor, include_metrics=False))

        ids = [r.pass_id for r in first.records + second.records]
        assert sorted(ids) == ["P1", "P2", "P3"]
        assert len(set(ids)) == 3


class TestFilters:
    @pytest.mark.asyncio
    async def test_pass_type(self, festival, settings):
        result = await DashboardPlanner(festival, settings).run(
            DashboardQuery(pass_type="group_events", include_metrics=False)
        )
        assert [r.pass_id for r in result.records] == ["P9", "P6", "P3"]

    @pytest.mark.asyncio
    async def test_archived_hidden_by_default(self, store, settings):
        seed_registration(store, 1)
        seed_registration(store, 2, isArchived=True)
        planner = DashboardPlanner(store, settings)

        hidden = await planner.run(DashboardQuery(include_metrics=False))
        shown = await planner.run(DashboardQuery(include_archived=True, include_metrics=False))

        assert [r.pass_id for r in hidden.records] == ["P1"]
        assert [r.pass_id for r in shown.records] == ["P2", "P1"]

    @pytest.mark.asyncio
    async def test_event_id_matches_selected_or_linked(self, store, settings):
        seed_registration(store, 1, selectedEvents=["E1"])
        seed_registration(store, 2, eventIds=["E1", "E2"])
        seed_registration(store, 3, eventId="E1")
        seed_registration(store, 4, selectedEvents=["E2"])

        result = await DashboardPlanner(store, settings).run(DashboardQuery(event_id="E1", include_metrics=False))
        assert [r.pass_id for r in result.records] == ["P3", "P2", "P1"]

    @pytest.mark.asyncio
    async def test_date_range(self, store, settings):
        seed_registration(store, 1, created_at=BASE_TIME - timedelta(days=2))
        seed_registration(store, 2, created_at=BASE_TIME)
        seed_registration(store, 3, created_at=BASE_TIME + timedelta(days=2))

        query = DashboardQuery.from_params(
            {"from": "2026-02-09", "to": "2026-02-10", "includeMetrics": "0"}, settings
        )
        result = await DashboardPlanner(store, settings).run(query)
        assert [r.pass_id for r in result.records] == ["P2"]

    @pytest.mark.asyncio
    async def test_free_text_search(self, festival, settings):
        result = await DashboardPlanner(festival, settings).run(
            DashboardQuery(q="attendee7@", include_metrics=False)
        )
        assert [r.pass_id for r in result.records] == ["P7"]


class TestRevenue:
    @pytest.mark.asyncio
    async def test_total_is_independent_of_page(self, festival, settings):
        planner = DashboardPlanner(festival, settings)
        result = await planner.run(DashboardQuery(mode="financial", page_size=2, include_metrics=False))

        expected = sum(100 * i for i in range(1, 10) if i != 5)
        assert len(result.records) == 2
        assert result.total_revenue == expected

    @pytest.mark.asyncio
    async def test_operations_mode_has_no_revenue(self, festival, settings):
        result = await DashboardPlanner(festival, settings).run(DashboardQuery(include_metrics=False))
        assert result.total_revenue is None

    @pytest.mark.asyncio
    async def test_revenue_respects_filters(self, festival, settings):
        total = await DashboardPlanner(festival, settings).total_revenue(
            DashboardQuery(mode="financial", pass_type="group_events")
        )
        assert total == 300 + 600 + 900
