# cart_tracker/services/tracker_service.py
from datetime import datetime, timezone, timedelta
from decimal import Decimal
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cart_tracker.data.models.cart_line import CartLineModel
from cart_tracker.domain.schemas import (
    CartAddEvent,
    CartStatus,
    DailyStatOut,
    StatisticsOut,
    SummaryOut,
    TopProductOut,
)
from cart_tracker.repos.cart_line_repo import CartLineRepo
from cart_tracker.services.order_client import OrderClient
from cart_tracker.services.product_client import ProductClient
from cart_tracker.utils.settings import ABANDON_AFTER_MINUTES, RETENTION_DAYS
from cart_tracker.utils.logging import get_logger

logger = get_logger(__name__)

UNKNOWN_PRODUCT = "Unknown Product"
TWO_PLACES = Decimal("0.01")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _money(value) -> Decimal:
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(TWO_PLACES)


def _rate(part: int, total: int) -> float:
    if total <= 0:
        return 0
    return round(part / total * 100, 2)


class TrackerService:
    """
    Sledzenie porzuconych koszykow.

    Komendy: record_cart_add, record_order_completed, sweep_abandoned, sweep_retention.
    Zapytania: get_statistics (tylko odczyt).

    Porzucenie wykrywane jest leniwie: sweep_abandoned uruchamia sie po kazdym
    record_cart_add, wiec koszyk staje sie abandoned dopiero przy nastepnym
    dodaniu do koszyka (dowolnej sesji) po uplywie progu.

    Dopasowanie zamowienia do koszykow to OR po sesji, user_id, emailu i
    product_id. Celowo dopasowuje za duzo: konwertuje tez cudze otwarte
    koszyki z tymi samymi produktami (false positive), bo nie ma twardego
    powiazania koszyk -> zamowienie.
    """

    def __init__(
        self,
        db: Session,
        product_client: ProductClient,
        order_client: OrderClient,
        clock: Callable[[], datetime] = _utcnow,
        abandon_after: timedelta = timedelta(minutes=ABANDON_AFTER_MINUTES),
        retention: timedelta = timedelta(days=RETENTION_DAYS),
    ):
        self.repo = CartLineRepo(db)
        self.product_client = product_client
        self.order_client = order_client
        self.clock = clock
        self.abandon_after = abandon_after
        self.retention = retention

    # =====================================================
    # COMMANDS
    # =====================================================
    def record_cart_add(self, event: CartAddEvent) -> None:
        """
        Upsert pozycji (sesja, produkt, pending), potem sweep porzuconych.
        Ponowne zdarzenie nadpisuje quantity, price, cart_total i updated_at.
        """
        now = self.clock()
        product_name, price = self._resolve_product(event)

        try:
            existing = self.repo.get_pending(event.session_id, event.product_id)

            if existing:
                logger.info(
                    f"Updating pending line {existing.id} for session {event.session_id}, "
                    f"product {event.product_id}: quantity {existing.quantity} -> {event.quantity}"
                )
                existing.quantity = event.quantity
                existing.price = price
                existing.cart_total = event.cart_total
                existing.updated_at = now
                self.repo.add(existing)
            else:
                line = self.repo.add(
                    CartLineModel(
                        session_id=event.session_id,
                        user_id=event.user_id or None,
                        user_email=event.user_email or None,
                        product_id=event.product_id,
                        product_name=product_name,
                        quantity=event.quantity,
                        price=price,
                        cart_total=event.cart_total,
                        status=CartStatus.PENDING.value,
                        user_agent=event.user_agent,
                        ip_address=event.ip_address,
                        created_at=now,
                        updated_at=now,
                    )
                )
                logger.info(
                    f"Tracking new line {line.id} for session {event.session_id}, "
                    f"product {event.product_id}"
                )

            self._mark_abandoned(now)
            self.repo.commit()

        except SQLAlchemyError as e:
            logger.error(f"Failed to record cart add for session {event.session_id}: {e}")
            self.repo.rollback()
            raise

    def record_order_completed(self, order_id: int, session_id: str | None = None) -> int:
        """
        Oznacza jako converted wszystkie pending/abandoned pozycje pasujace
        do zamowienia. Zwraca liczbe zmienionych wierszy.
        """
        order = self.order_client.get_order(order_id)
        if not order:
            logger.warning(f"Order {order_id} not found, skipping reconciliation")
            return 0

        now = self.clock()
        try:
            rowcount = self.repo.mark_converted(
                order_id=order_id,
                now=now,
                session_id=session_id,
                user_id=order.user_id,
                user_email=order.billing_email,
                product_ids=order.product_ids,
            )
            self.repo.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to reconcile order {order_id}: {e}")
            self.repo.rollback()
            raise

        logger.info(f"Order {order_id} converted {rowcount} cart lines")
        return rowcount

    def sweep_abandoned(self) -> int:
        try:
            rowcount = self._mark_abandoned(self.clock())
            self.repo.commit()
        except SQLAlchemyError as e:
            logger.error(f"Abandoned sweep failed: {e}")
            self.repo.rollback()
            raise
        return rowcount

    def sweep_retention(self) -> int:
        cutoff = self.clock() - self.retention
        try:
            rowcount = self.repo.delete_created_before(cutoff)
            self.repo.commit()
        except SQLAlchemyError as e:
            logger.error(f"Retention sweep failed: {e}")
            self.repo.rollback()
            raise

        logger.info(f"Retention sweep removed {rowcount} cart lines created before {cutoff}")
        return rowcount

    # =====================================================
    # QUERY
    # =====================================================
    def get_statistics(self, period_days: int = 30) -> StatisticsOut:
        since = self.clock() - timedelta(days=period_days)

        counts = self.repo.status_counts(since)
        abandoned = counts.get(CartStatus.ABANDONED.value, 0)
        converted = counts.get(CartStatus.CONVERTED.value, 0)
        pending = counts.get(CartStatus.PENDING.value, 0)
        total = sum(counts.values())

        summary = SummaryOut(
            total_carts=total,
            abandoned_carts=abandoned,
            converted_carts=converted,
            pending_carts=pending,
            abandonment_rate=_rate(abandoned, total),
            conversion_rate=_rate(converted, total),
            lost_revenue=_money(self.repo.revenue_by_status(since, CartStatus.ABANDONED.value)),
            recovered_revenue=_money(self.repo.revenue_by_status(since, CartStatus.CONVERTED.value)),
        )

        daily = [
            DailyStatOut(
                date=str(row.date),
                total=row.total,
                abandoned=row.abandoned or 0,
                converted=row.converted or 0,
                pending=row.pending or 0,
            )
            for row in self.repo.daily_breakdown(since)
        ]

        top = [
            TopProductOut(
                product_id=row.product_id,
                product_name=row.product_name,
                count=row.line_count,
                lost_revenue=_money(row.lost_revenue),
            )
            for row in self.repo.top_abandoned_products(since)
        ]

        return StatisticsOut(
            period_days=period_days,
            summary=summary,
            daily_stats=daily,
            top_abandoned_products=top,
        )

    # =====================================================
    # HELPERS
    # =====================================================
    def _mark_abandoned(self, now: datetime) -> int:
        rowcount = self.repo.mark_abandoned(created_before=now - self.abandon_after, now=now)
        if rowcount:
            logger.info(f"Marked {rowcount} pending cart lines as abandoned")
        return rowcount

    def _resolve_product(self, event: CartAddEvent) -> tuple[str, Decimal]:
        name = event.product_name
        price = event.price

        if name is None or price is None:
            pdata = self.product_client.lookup_product(event.product_id) or {}
            if name is None:
                name = pdata.get("name") or UNKNOWN_PRODUCT
            if price is None:
                price = pdata.get("price") or 0

        return name, _money(price)
