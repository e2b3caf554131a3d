from __future__ import annotations

from typing import Any


class OrderflowError(Exception):
    """Base for errors surfaced to callers. ``code`` is stable across releases."""

    code = "ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details = details or {}


class InvalidInputError(OrderflowError):
    code = "VALIDATION_ERROR"


class TableInactiveError(InvalidInputError):
    code = "TABLE_INACTIVE"


class MenuItemUnavailableError(InvalidInputError):
    code = "MENU_ITEM_UNAVAILABLE"


class PriceMismatchError(OrderflowError):
    code = "PRICE_MISMATCH"


class NotFoundError(OrderflowError):
    code = "NOT_FOUND"


class TableNotFoundError(NotFoundError):
    code = "TABLE_NOT_FOUND"


class MenuItemNotFoundError(NotFoundError):
    code = "MENU_ITEM_NOT_FOUND"


class OrderNotFoundError(NotFoundError):
    code = "ORDER_NOT_FOUND"


class WaiterNotFoundError(NotFoundError):
    code = "WAITER_NOT_FOUND"


class AssignmentNotFoundError(NotFoundError):
    code = "ASSIGNMENT_NOT_FOUND"


class InvalidTransitionError(OrderflowError):
    code = "INVALID_ORDER_TRANSITION"


class ConflictError(OrderflowError):
    code = "CONFLICT"


class TableLabelConflictError(ConflictError):
    code = "TABLE_LABEL_CONFLICT"


class ConcurrentTransitionError(ConflictError):
    code = "CONCURRENT_TRANSITION"


class UnauthorizedError(OrderflowError):
    code = "UNAUTHORIZED"


class ForbiddenError(OrderflowError):
    code = "FORBIDDEN"
