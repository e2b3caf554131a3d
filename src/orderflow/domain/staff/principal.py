from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from orderflow.domain.common.ids import StaffId
from orderflow.domain.order.entities import OrderStatus


class StaffRole(str, Enum):
    WAITER = "waiter"
    MANAGER = "manager"
    COOK = "cook"


@dataclass(frozen=True)
class Customer:
    """Unauthenticated guest at a table; gated by network origin upstream."""


@dataclass(frozen=True)
class Waiter:
    staff_id: StaffId


@dataclass(frozen=True)
class Manager:
    staff_id: StaffId


@dataclass(frozen=True)
class Cook:
    staff_id: StaffId


Principal = Union[Customer, Waiter, Manager, Cook]


class InvalidPrincipalError(Exception):
    pass


def principal_from_claims(role: str | None, subject: str | None) -> Principal:
    if not role:
        return Customer()
    try:
        staff_role = StaffRole(role.strip().lower())
    except ValueError as exc:
        raise InvalidPrincipalError(f"unknown role: {role}") from exc
    if not subject:
        raise InvalidPrincipalError(f"role {staff_role.value} requires a principal id")

    staff_id = StaffId(subject)
    match staff_role:
        case StaffRole.WAITER:
            return Waiter(staff_id=staff_id)
        case StaffRole.MANAGER:
            return Manager(staff_id=staff_id)
        case StaffRole.COOK:
            return Cook(staff_id=staff_id)


def is_staff(principal: Principal) -> bool:
    match principal:
        case Waiter() | Manager() | Cook():
            return True
        case Customer():
            return False


def may_set_status(principal: Principal, to_status: OrderStatus) -> bool:
    match principal:
        case Manager():
            return True
        case Cook():
            return to_status in {
                OrderStatus.PREPARING,
                OrderStatus.READY,
                OrderStatus.CANCELLED,
            }
        case Waiter():
            return to_status == OrderStatus.SERVED
        case Customer():
            return False


def may_manage(principal: Principal) -> bool:
    match principal:
        case Manager():
            return True
        case Waiter() | Cook() | Customer():
            return False


def may_answer_calls(principal: Principal) -> bool:
    match principal:
        case Waiter() | Manager():
            return True
        case Cook() | Customer():
            return False


def may_view_waiter_tables(principal: Principal, waiter_id: StaffId) -> bool:
    match principal:
        case Manager():
            return True
        case Waiter(staff_id=staff_id):
            return staff_id == waiter_id
        case Cook() | Customer():
            return False


def describe(principal: Principal) -> str:
    match principal:
        case Customer():
            return "customer"
        case Waiter(staff_id=staff_id):
            return f"waiter:{staff_id}"
        case Manager(staff_id=staff_id):
            return f"manager:{staff_id}"
        case Cook(staff_id=staff_id):
            return f"cook:{staff_id}"
