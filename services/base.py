"""Base services container for dependency injection."""

from config import Config
from db.manager import DatabaseManager
from services.events import ChangeNotifier


class Services:
    """Container for all application services.

    This class provides a centralized way to access all services and makes
    it easy to inject mock services for testing.

    Args:
        config: Application configuration object.
        db_manager: Optional database manager for testing. If provided, config is ignored.
    """

    def __init__(self, config: Config, db_manager=None):
        """Initialize services with configuration.

        Args:
            config: Config object containing application configuration.
            db_manager: Optional database manager for dependency injection (testing).
                       If None, creates DatabaseManager from config.
        """
        self.config = config
        self.db_manager = db_manager or DatabaseManager(config)
        self.notifier = ChangeNotifier()

        # Lazy import to avoid circular dependencies
        from services.categories import CategoryService
        from services.transactions import (
            IncomeService,
            ExpenseService,
            InvestmentService,
        )
        from services.budgets import BudgetService

        self.categories = CategoryService(self.db_manager, self.notifier)
        self.income = IncomeService(self.db_manager, self.notifier)
        self.expenses = ExpenseService(self.db_manager, self.notifier)
        self.investments = InvestmentService(self.db_manager, self.notifier)
        self.budgets = BudgetService(self.db_manager, self.notifier)

    def subscribe(self, handler) -> None:
        """Register a callback invoked with a ChangeEvent after every write."""
        self.notifier.subscribe(handler)

    def unsubscribe(self, handler) -> None:
        self.notifier.unsubscribe(handler)
