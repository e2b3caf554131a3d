from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    func,
    true,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class StoreModel(Base):
    __tablename__ = "stores"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)


class MenuItemModel(Base):
    __tablename__ = "menu_items"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    store_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("stores.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    category_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=true())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    modifier_links: Mapped[list["ItemModifierModel"]] = relationship(
        back_populates="item",
        cascade="all, delete-orphan",
        order_by="ItemModifierModel.position",
    )


class ModifierModel(Base):
    __tablename__ = "modifiers"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    store_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("stores.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    min_select: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_select: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    options: Mapped[list["ModifierOptionModel"]] = relationship(
        back_populates="modifier",
        cascade="all, delete-orphan",
        order_by="ModifierOptionModel.position",
    )


class ModifierOptionModel(Base):
    __tablename__ = "modifier_options"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    modifier_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("modifiers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    price_delta_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    modifier: Mapped[ModifierModel] = relationship(back_populates="options")


class ItemModifierModel(Base):
    __tablename__ = "item_modifiers"

    item_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("menu_items.id", ondelete="CASCADE"),
        primary_key=True,
    )
    modifier_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("modifiers.id", ondelete="CASCADE"),
        primary_key=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    item: Mapped[MenuItemModel] = relationship(back_populates="modifier_links")
    modifier: Mapped[ModifierModel] = relationship()
