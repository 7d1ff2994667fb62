"""
Declarative base for every payroll table.

Column conventions come from the annotation map, so ORM modules only write
``Mapped[Decimal]`` / ``Mapped[UUID]`` / ``Mapped[datetime]``:

    Decimal   -> NUMERIC(14, 2)   pesos and centavos; rates, days and
                                  balances are all quantized to 0.01
    UUID      -> UUID             native on PostgreSQL, CHAR(32) on SQLite
    datetime  -> TIMESTAMP WITH TIME ZONE
    int       -> BIGINT

``TrackedBase`` adds who created and last touched a row.  Those columns are
the only ones the immutability listeners let change on a locked row.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, Date, DateTime, Numeric, Uuid, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

MONEY = Numeric(14, 2, asdecimal=True)


class Base(DeclarativeBase):

    type_annotation_map: ClassVar[dict] = {
        Decimal: MONEY,
        datetime: DateTime(timezone=True),
        date: Date(),
        UUID: Uuid(),
        int: BigInteger,
    }

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)


class TrackedBase(Base):
    """Rows stamped with the acting user and time of creation and last update.

    ``created_by_id`` is the already-authorized actor passed into the service
    call; it is required.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(),
    )
    created_by_id: Mapped[UUID] = mapped_column()
    updated_by_id: Mapped[UUID | None] = mapped_column()
