from smartspend.models.user import User
from smartspend.models.budget import Budget, Category
from smartspend.models.finance import Subscription, Transaction

__all__ = ["User", "Budget", "Category", "Subscription", "Transaction"]
