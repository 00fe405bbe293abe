# cart_tracker/data/models/cart_line.py
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, BigInteger, String, Text, DateTime, Numeric

from cart_tracker.data.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class CartLineModel(Base):
    """Jedna pozycja koszyka (sesja + produkt) i jej status."""

    __tablename__ = "abandoned_carts"

    id = Column(Integer, primary_key=True)
    session_id = Column(String(255), nullable=False, index=True)
    user_id = Column(BigInteger, nullable=True, index=True)
    user_email = Column(String(100), nullable=True, index=True)

    product_id = Column(BigInteger, nullable=False, index=True)
    product_name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    cart_total = Column(Numeric(10, 2), nullable=False, default=0)

    # pending -> abandoned -> converted, nigdy wstecz
    status = Column(String(20), nullable=False, default="pending", index=True)

    user_agent = Column(Text, nullable=True)
    ip_address = Column(String(45), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    converted_at = Column(DateTime(timezone=True), nullable=True)
    order_id = Column(BigInteger, nullable=True)
