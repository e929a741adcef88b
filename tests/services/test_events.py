from tests.helpers import make_expense, make_income


class TestChangeNotifications:
    """Tests for store change notifications."""

    def test_writes_publish_events(self, services, categories):
        events = []
        services.subscribe(events.append)

        expense = services.expenses.create(make_expense(categories["expense"].id))
        services.expenses.delete(expense.id)

        assert [(e.table, e.action, e.record_id) for e in events] == [
            ("expenses", "create", expense.id),
            ("expenses", "delete", expense.id),
        ]

    def test_rejected_writes_publish_nothing(self, services):
        events = []
        services.subscribe(events.append)

        try:
            services.expenses.create(make_expense(9999))
        except ValueError:
            pass

        assert events == []

    def test_unsubscribe(self, services):
        events = []
        services.subscribe(events.append)
        services.unsubscribe(events.append)

        services.categories.create("Food", "expense")

        assert events == []

    def test_failing_subscriber_does_not_fail_committed_write(self, services, categories, caplog):
        """Test that a subscriber error is logged, not raised, and others still run."""
        events = []

        def broken(event):
            raise RuntimeError("subscriber exploded")

        services.subscribe(broken)
        services.subscribe(events.append)

        income = services.income.create(make_income(categories["income"].id))

        assert income.id is not None
        assert [r.id for r in services.income.find_all()] == [income.id]
        assert [(e.table, e.action) for e in events] == [("income", "create")]
        assert "subscriber exploded" in caplog.text
