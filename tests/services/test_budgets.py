import threading
from datetime import date, datetime
from decimal import Decimal

import pytest

from errors import NotFoundError, OverlapError, ValidationError
from models.budget import Budget
from services.budgets import intervals_overlap
from tests.helpers import make_budget


class TestIntervalsOverlap:
    """Tests for the closed-interval overlap test."""

    def test_disjoint(self):
        assert not intervals_overlap(
            date(2024, 1, 1), date(2024, 1, 31), date(2024, 2, 1), date(2024, 2, 29)
        )

    def test_touching_endpoints_overlap(self):
        assert intervals_overlap(
            date(2024, 1, 1), date(2024, 1, 31), date(2024, 1, 31), date(2024, 2, 29)
        )

    def test_contained(self):
        assert intervals_overlap(
            date(2024, 1, 1), date(2024, 12, 31), date(2024, 3, 1), date(2024, 3, 31)
        )

    def test_compares_whole_days(self):
        """Test that times of day do not split a shared day."""
        assert intervals_overlap(
            datetime(2024, 1, 1), datetime(2024, 1, 31, 8, 0),
            datetime(2024, 1, 31, 20, 0), datetime(2024, 2, 29),
        )


class TestBudgetCreate:
    """Tests for BudgetService.create."""

    def test_create_budget(self, services, categories):
        """Test creating a budget."""
        budget = services.budgets.create(make_budget(categories["expense"].id))

        assert budget.id is not None
        found = services.budgets.find(budget.id)
        assert found.amount == Decimal("500.00")
        assert found.period == "monthly"
        assert found.start_date == datetime(2024, 1, 1)
        assert found.end_date == datetime(2024, 1, 31)
        assert found.is_active is True

    def test_overlapping_budget_fails(self, services, categories):
        """Test that a second overlapping active budget is rejected."""
        cat = categories["expense"].id
        first = services.budgets.create(make_budget(cat))

        with pytest.raises(OverlapError) as exc_info:
            services.budgets.create(
                make_budget(cat, start=date(2024, 1, 15), end=date(2024, 2, 14))
            )

        assert exc_info.value.conflicting_ids == [first.id]
        assert exc_info.value.category_id == cat
        assert len(services.budgets.find_all()) == 1

    def test_touching_budget_fails(self, services, categories):
        """Test that sharing a single boundary day counts as overlap."""
        cat = categories["expense"].id
        services.budgets.create(make_budget(cat))

        with pytest.raises(OverlapError):
            services.budgets.create(
                make_budget(cat, start=date(2024, 1, 31), end=date(2024, 2, 29))
            )

    def test_adjacent_budgets_succeed(self, services, categories):
        """Test consecutive non-overlapping budgets."""
        cat = categories["expense"].id
        services.budgets.create(make_budget(cat))
        services.budgets.create(
            make_budget(cat, start=date(2024, 2, 1), end=date(2024, 2, 29))
        )

        assert len(services.budgets.find_all()) == 2

    def test_overlap_in_other_category_is_fine(self, services, categories):
        """Test that overlap is per category."""
        other = services.categories.create("Food", "expense")
        services.budgets.create(make_budget(categories["expense"].id))
        services.budgets.create(make_budget(other.id))

        assert len(services.budgets.find_all()) == 2

    def test_inactive_budget_does_not_block(self, services, categories):
        """Test that inactive budgets are ignored by the overlap check."""
        cat = categories["expense"].id
        services.budgets.create(make_budget(cat, is_active=False))
        services.budgets.create(make_budget(cat))

        assert len(services.budgets.find_all(active_only=True)) == 1

    def test_inactive_budget_may_overlap_active(self, services, categories):
        """Test that an inactive budget can be created over an active one."""
        cat = categories["expense"].id
        services.budgets.create(make_budget(cat))
        services.budgets.create(make_budget(cat, is_active=False))

        assert len(services.budgets.find_all()) == 2

    def test_requires_expense_category(self, services, categories):
        """Test that budgets only apply to expense categories."""
        with pytest.raises(ValidationError) as exc_info:
            services.budgets.create(make_budget(categories["income"].id))

        assert exc_info.value.field == "category_id"

    def test_unknown_category_fails(self, services):
        with pytest.raises(ValidationError):
            services.budgets.create(make_budget(9999))

    def test_end_must_follow_start(self, services, categories):
        """Test that end_date must be after start_date."""
        cat = categories["expense"].id
        with pytest.raises(ValidationError) as exc_info:
            services.budgets.create(
                make_budget(cat, start=date(2024, 1, 31), end=date(2024, 1, 31))
            )

        assert exc_info.value.field == "end_date"

    def test_invalid_period_fails(self, services, categories):
        with pytest.raises(ValidationError) as exc_info:
            services.budgets.create(make_budget(categories["expense"].id, period="daily"))

        assert exc_info.value.field == "period"

    def test_non_positive_amount_fails(self, services, categories):
        with pytest.raises(ValidationError) as exc_info:
            services.budgets.create(make_budget(categories["expense"].id, amount="0"))

        assert exc_info.value.field == "amount"

    def test_missing_dates_fail(self, services, categories):
        budget = Budget(
            category_id=categories["expense"].id,
            amount=Decimal("100"),
            period="weekly",
            start_date=None,
            end_date=date(2024, 1, 7),
        )

        with pytest.raises(ValidationError) as exc_info:
            services.budgets.create(budget)

        assert exc_info.value.field == "start_date"

    def test_failed_create_leaves_connection_usable(self, services, categories):
        """Test that a rejected write rolls back cleanly."""
        cat = categories["expense"].id
        services.budgets.create(make_budget(cat))
        with pytest.raises(OverlapError):
            services.budgets.create(make_budget(cat))

        services.budgets.create(
            make_budget(cat, start=date(2024, 3, 1), end=date(2024, 3, 31))
        )

        assert len(services.budgets.find_all()) == 2


class TestBudgetExistsOverlapping:
    """Tests for BudgetService.exists_overlapping."""

    def test_exists_overlapping(self, services, categories):
        cat = categories["expense"].id
        budget = services.budgets.create(make_budget(cat))

        assert services.budgets.exists_overlapping(cat, date(2024, 1, 20), date(2024, 2, 5))
        assert not services.budgets.exists_overlapping(
            cat, date(2024, 2, 1), date(2024, 2, 5)
        )
        assert not services.budgets.exists_overlapping(
            cat, date(2024, 1, 20), date(2024, 2, 5), exclude_id=budget.id
        )


class TestBudgetUpdateDelete:
    """Tests for updating, deactivating and deleting budgets."""

    def test_update_own_interval(self, services, categories):
        """Test that a budget does not overlap itself when updated."""
        cat = categories["expense"].id
        budget = services.budgets.create(make_budget(cat))

        updated = services.budgets.update(
            budget.id, make_budget(cat, amount="650", end=date(2024, 2, 15))
        )

        assert updated.created_at == budget.created_at
        found = services.budgets.find(budget.id)
        assert found.amount == Decimal("650")
        assert found.end_date == datetime(2024, 2, 15)

    def test_update_into_overlap_fails(self, services, categories):
        cat = categories["expense"].id
        services.budgets.create(make_budget(cat))
        february = services.budgets.create(
            make_budget(cat, start=date(2024, 2, 1), end=date(2024, 2, 29))
        )

        with pytest.raises(OverlapError):
            services.budgets.update(
                february.id, make_budget(cat, start=date(2024, 1, 20), end=date(2024, 2, 29))
            )

        assert services.budgets.find(february.id).start_date == datetime(2024, 2, 1)

    def test_update_not_found(self, services, categories):
        with pytest.raises(NotFoundError):
            services.budgets.update(9999, make_budget(categories["expense"].id))

    def test_deactivate_then_replace(self, services, categories):
        """Test deactivation as the non-destructive way to free an interval."""
        cat = categories["expense"].id
        old = services.budgets.create(make_budget(cat, amount="400"))

        deactivated = services.budgets.set_active(old.id, False)
        replacement = services.budgets.create(make_budget(cat, amount="450"))

        assert deactivated.is_active is False
        assert services.budgets.find(old.id).is_active is False
        assert [b.id for b in services.budgets.find_all(active_only=True)] == [replacement.id]

    def test_reactivate_into_overlap_fails(self, services, categories):
        cat = categories["expense"].id
        old = services.budgets.create(make_budget(cat))
        services.budgets.set_active(old.id, False)
        services.budgets.create(make_budget(cat))

        with pytest.raises(OverlapError):
            services.budgets.set_active(old.id, True)

    def test_set_active_reads_inside_the_write_lock(self, services, categories, monkeypatch):
        """Test that set_active cannot overwrite an update made after its read."""
        store = services.budgets
        budget = store.create(make_budget(categories["expense"].id))
        lock_held = []
        original_find = store._find

        def tracking_find(conn, budget_id):
            lock_held.append(store._write_lock.locked())
            return original_find(conn, budget_id)

        monkeypatch.setattr(store, "_find", tracking_find)

        store.set_active(budget.id, False)

        assert lock_held == [True]

    def test_set_active_keeps_latest_fields(self, services, categories):
        cat = categories["expense"].id
        budget = services.budgets.create(make_budget(cat))
        services.budgets.update(budget.id, make_budget(cat, amount="725"))

        services.budgets.set_active(budget.id, False)

        found = services.budgets.find(budget.id)
        assert found.amount == Decimal("725")
        assert found.is_active is False

    def test_set_active_not_found(self, services):
        with pytest.raises(NotFoundError):
            services.budgets.set_active(9999, True)

    def test_delete(self, services, categories):
        budget = services.budgets.create(make_budget(categories["expense"].id))

        services.budgets.delete(budget.id)

        assert services.budgets.find(budget.id) is None

    def test_delete_not_found(self, services):
        with pytest.raises(NotFoundError):
            services.budgets.delete(9999)

    def test_find_by_category(self, services, categories):
        other = services.categories.create("Food", "expense")
        services.budgets.create(make_budget(categories["expense"].id))
        services.budgets.create(make_budget(other.id))

        found = services.budgets.find_by_category(other.id)

        assert [b.category_id for b in found] == [other.id]


class TestBudgetConcurrency:
    """Tests for serialized budget writes."""

    def test_concurrent_overlapping_creates_admit_one(self, test_config, tmp_path):
        """Test that racing overlapping creates leave exactly one budget."""
        from db.manager import DatabaseManager
        from services.base import Services

        manager = DatabaseManager(test_config).open()
        services = Services(test_config, db_manager=manager)
        cat = services.categories.find_by_name("Food & Dining", "expense").id

        results = []
        barrier = threading.Barrier(4)

        def worker():
            barrier.wait()
            try:
                results.append(services.budgets.create(make_budget(cat)).id)
            except OverlapError:
                results.append(None)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len([r for r in results if r is not None]) == 1
        assert len(services.budgets.find_all()) == 1
        manager.close()
