from __future__ import annotations

import os

from sqlalchemy import Engine, inspect
from sqlalchemy.orm import Session

from orderflow.domain.staff.principal import StaffRole
from orderflow.infrastructure.db.models.menu import (
    ItemModifierModel,
    MenuItemModel,
    ModifierModel,
    ModifierOptionModel,
    StoreModel,
)
from orderflow.infrastructure.db.models.staff import StaffModel
from orderflow.infrastructure.db.models.table import TableModel
from orderflow.infrastructure.db.session import get_engine

REQUIRED_TABLES = {"stores", "tables", "menu_items", "modifiers", "staff", "orders"}

TABLES = [("tbl_t1", "T1"), ("tbl_t2", "T2"), ("tbl_t3", "T3"), ("tbl_t4", "T4")]

STAFF = [
    ("stf_waiter_1", "Alex", StaffRole.WAITER),
    ("stf_waiter_2", "Sam", StaffRole.WAITER),
    ("stf_cook_1", "Robin", StaffRole.COOK),
    ("stf_manager_1", "Jordan", StaffRole.MANAGER),
]

MODIFIERS = [
    {
        "id": "mod_sugar",
        "name": "Sugar",
        "is_required": False,
        "min_select": 0,
        "max_select": 1,
        "options": [("opt_sugar_none", "None", 0), ("opt_sugar_extra", "Extra", 30)],
    },
    {
        "id": "mod_size",
        "name": "Size",
        "is_required": True,
        "min_select": 1,
        "max_select": 1,
        "options": [("opt_size_regular", "Regular", 0), ("opt_size_large", "Large", 200)],
    },
    {
        "id": "mod_toppings",
        "name": "Toppings",
        "is_required": False,
        "min_select": 0,
        "max_select": 2,
        "options": [
            ("opt_top_cheese", "Cheese", 100),
            ("opt_top_bacon", "Bacon", 150),
            ("opt_top_egg", "Egg", 120),
        ],
    },
]

ITEMS = [
    {
        "id": "itm_tea",
        "category_id": "drinks",
        "name": "Milk Tea",
        "description": "Black tea with milk",
        "price_cents": 250,
        "is_available": True,
        "modifiers": ["mod_sugar"],
    },
    {
        "id": "itm_burger",
        "category_id": "mains",
        "name": "House Burger",
        "description": "Beef patty, lettuce, tomato",
        "price_cents": 1200,
        "is_available": True,
        "modifiers": ["mod_size", "mod_toppings"],
    },
    {
        "id": "itm_salad",
        "category_id": "mains",
        "name": "Garden Salad",
        "description": "Seasonal greens",
        "price_cents": 900,
        "is_available": True,
        "modifiers": [],
    },
    {
        "id": "itm_cake",
        "category_id": "desserts",
        "name": "Cheesecake",
        "description": "Baked vanilla cheesecake",
        "price_cents": 650,
        "is_available": False,
        "modifiers": [],
    },
]


def seed_store(engine: Engine, store_id: str = "store_1", currency: str = "USD") -> None:
    """Upsert a demo store. Safe to run repeatedly."""
    with Session(engine) as session:
        session.merge(StoreModel(id=store_id, name="Demo Store", currency=currency))

        for table_id, label in TABLES:
            session.merge(TableModel(id=table_id, store_id=store_id, label=label, is_active=True))

        for staff_id, display_name, role in STAFF:
            session.merge(
                StaffModel(
                    id=staff_id,
                    store_id=store_id,
                    display_name=display_name,
                    role=role.value,
                )
            )

        for modifier in MODIFIERS:
            session.merge(
                ModifierModel(
                    id=modifier["id"],
                    store_id=store_id,
                    name=modifier["name"],
                    is_required=modifier["is_required"],
                    min_select=modifier["min_select"],
                    max_select=modifier["max_select"],
                )
            )
            for position, (option_id, label, delta) in enumerate(modifier["options"]):
                session.merge(
                    ModifierOptionModel(
                        id=option_id,
                        modifier_id=modifier["id"],
                        label=label,
                        price_delta_cents=delta,
                        position=position,
                    )
                )

        for item in ITEMS:
            session.merge(
                MenuItemModel(
                    id=item["id"],
                    store_id=store_id,
                    category_id=item["category_id"],
                    name=item["name"],
                    description=item["description"],
                    price_cents=item["price_cents"],
                    currency=currency,
                    is_available=item["is_available"],
                )
            )
            for position, modifier_id in enumerate(item["modifiers"]):
                session.merge(
                    ItemModifierModel(
                        item_id=item["id"],
                        modifier_id=modifier_id,
                        position=position,
                    )
                )

        session.commit()


def main() -> None:
    engine = get_engine(timeout_seconds=2.0)
    inspector = inspect(engine)
    if not REQUIRED_TABLES.issubset(set(inspector.get_table_names())):
        print("no schema yet")
        return

    seed_store(
        engine,
        store_id=os.getenv("STORE_ID", "store_1"),
        currency=os.getenv("STORE_CURRENCY", "USD").upper(),
    )
    print("seed complete")


if __name__ == "__main__":
    main()
