# cart_tracker/domain/schemas.py
from enum import Enum
from pydantic import BaseModel, Field
from typing import List
from decimal import Decimal


class CartStatus(str, Enum):
    PENDING = "pending"
    ABANDONED = "abandoned"
    CONVERTED = "converted"


# statusy zamowienia, po ktorych koszyk uznajemy za skonwertowany
CONVERTING_ORDER_STATUSES = {"completed", "processing", "paid"}


class CartAddEvent(BaseModel):
    """Zdarzenie dodania produktu do koszyka (wejscie serwisu)."""

    session_id: str = Field(..., min_length=1, max_length=255)
    user_id: int | None = None
    user_email: str | None = Field(None, max_length=100)
    product_id: int = Field(..., gt=0)
    quantity: int = Field(..., gt=0)
    cart_total: Decimal = Field(Decimal("0.00"), ge=0)
    product_name: str | None = Field(None, max_length=255)
    price: Decimal | None = Field(None, ge=0)
    user_agent: str | None = None
    ip_address: str | None = Field(None, max_length=45)


class CartAddIn(BaseModel):
    """Schema dla endpointu cart-add; sesja, IP i user agent pochodza z requestu."""

    user_id: int | None = None
    user_email: str | None = Field(None, max_length=100)
    product_id: int = Field(..., gt=0, description="ID produktu (musi być > 0)")
    quantity: int = Field(..., gt=0, description="Ilość produktu (musi być > 0)")
    cart_total: Decimal = Field(Decimal("0.00"), ge=0, description="Wartosc calego koszyka")
    product_name: str | None = Field(None, max_length=255)
    price: Decimal | None = Field(None, ge=0)


class OrderSnapshot(BaseModel):
    """Dane zamowienia potrzebne do dopasowania koszykow."""

    order_id: int
    user_id: int | None = None
    billing_email: str | None = None
    product_ids: List[int] = Field(default_factory=list)


class OrderCompletedIn(BaseModel):
    order_id: int = Field(..., gt=0)
    status: str | None = Field(None, description="Status zamowienia, domyslnie completed")


class SummaryOut(BaseModel):
    total_carts: int = 0
    abandoned_carts: int = 0
    converted_carts: int = 0
    pending_carts: int = 0
    abandonment_rate: float = 0
    conversion_rate: float = 0
    lost_revenue: Decimal = Decimal("0.00")
    recovered_revenue: Decimal = Decimal("0.00")


class DailyStatOut(BaseModel):
    date: str
    total: int
    abandoned: int
    converted: int
    pending: int


class TopProductOut(BaseModel):
    product_id: int
    product_name: str
    count: int
    lost_revenue: Decimal


class StatisticsOut(BaseModel):
    period_days: int
    summary: SummaryOut
    daily_stats: List[DailyStatOut]
    top_abandoned_products: List[TopProductOut]

