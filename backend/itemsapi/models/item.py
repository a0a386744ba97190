"""
Items API — Item SQLAlchemy Model
==================================

What:  ORM model describing the `items` table.
Why:   Gives init_schema() a declarative definition to create the table and
       its index from; the record store itself talks plain SQL.
Who:   Read by database.init_schema(); column names match the SQL in
       services/item_service.py and services/benchmark_service.py.

Table Design:
    - id: opaque text key generated by the writer (uuid4 string)
    - title: free text, "item" when the client sends none
    - value: always a finite float (coerced before insert)
    - created_at: epoch milliseconds set by the writer, never updated

    Index on created_at DESC serves the list endpoint's
    ORDER BY created_at DESC LIMIT n.
"""

from sqlalchemy import BigInteger, Float, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from itemsapi.database import Base


class Item(Base):
    """A single stored record; the only persisted entity."""

    __tablename__ = "items"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        comment="Opaque unique identifier assigned at write time",
    )

    title: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="item",
    )

    value: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        default=0,
    )

    # Epoch milliseconds rather than a TIMESTAMP column: the API returns the
    # raw number and the list endpoint orders by it.
    created_at: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        comment="Creation time in epoch milliseconds",
    )

    __table_args__ = (
        Index("idx_items_created_at", created_at.desc()),
    )

    def __repr__(self) -> str:
        return f"<Item(id={self.id}, title='{self.title}', created_at={self.created_at})>"
