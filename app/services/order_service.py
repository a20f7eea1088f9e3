import logging
import re

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import StorageError
from app.models.order import Order, OrderCreate

logger = logging.getLogger(__name__)

ORDER_TYPES = {"order": "Order", "repair": "Repair", "delivery": "Delivery"}

_LEADING_INT_RE = re.compile(r"^\s*(-?\d+)")


def parse_amount(raw: str | None) -> int:
    """Leading integer of a free-text amount ("5000/-" -> 5000); anything else is 0."""
    m = _LEADING_INT_RE.match(raw or "")
    return int(m.group(1)) if m else 0


async def create_order(session: AsyncSession, data: OrderCreate) -> Order:
    order = Order(
        **data.model_dump(),
        remaining_amount=data.total_amount - data.advance_paid,
    )
    try:
        session.add(order)
        await session.commit()
        await session.refresh(order)
    except SQLAlchemyError as e:
        await session.rollback()
        logger.exception("Insert order failed: %s", e)
        raise StorageError() from e
    return order
