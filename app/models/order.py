from datetime import UTC, date, datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


def _utc_now() -> datetime:
    return datetime.now(UTC)


class Order(SQLModel, table=True):
    __tablename__ = "orders"
    id: int | None = Field(default=None, primary_key=True)
    first_name: str
    last_name: str = ""
    mobile: str
    address: str = ""
    total_amount: int = 0
    advance_paid: int = 0
    remaining_amount: int = 0
    type: str = Field(index=True)  # Order | Repair | Delivery
    karigar_name: str = ""
    tracking_number: str = ""
    notes: str = ""
    order_received_date: date
    created_at: datetime = Field(default_factory=_utc_now, sa_type=DateTime(timezone=True))


class OrderCreate(SQLModel):
    first_name: str
    last_name: str = ""
    mobile: str
    address: str = ""
    total_amount: int = 0
    advance_paid: int = 0
    type: str
    karigar_name: str = ""
    tracking_number: str = ""
    notes: str = ""
    order_received_date: date
