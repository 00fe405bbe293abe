# cart_tracker/repos/cart_line_repo.py
from datetime import datetime
from typing import Iterable

from sqlalchemy import select, update, delete, func, case, or_
from sqlalchemy.orm import Session

from cart_tracker.data.models.cart_line import CartLineModel
from cart_tracker.domain.schemas import CartStatus

PENDING = CartStatus.PENDING.value
ABANDONED = CartStatus.ABANDONED.value
CONVERTED = CartStatus.CONVERTED.value


class CartLineRepo:
    def __init__(self, db: Session):
        self.db = db

    # =====================================================
    # ODCZYT
    # =====================================================
    def get_pending(self, session_id: str, product_id: int) -> CartLineModel | None:
        return self.db.execute(
            select(CartLineModel)
            .where(
                CartLineModel.session_id == session_id,
                CartLineModel.product_id == product_id,
                CartLineModel.status == PENDING,
            )
            .order_by(CartLineModel.id)
            .limit(1)
        ).scalar_one_or_none()

    def list_all(self) -> list[CartLineModel]:
        return list(
            self.db.execute(
                select(CartLineModel).order_by(CartLineModel.created_at.desc(), CartLineModel.id.desc())
            ).scalars()
        )

    # =====================================================
    # ZAPIS
    # =====================================================
    def add(self, line: CartLineModel) -> CartLineModel:
        self.db.add(line)
        self.db.flush()
        return line

    def mark_abandoned(self, created_before: datetime, now: datetime) -> int:
        # created_at < granica, rekord utworzony dokladnie na granicy zostaje pending
        result = self.db.execute(
            update(CartLineModel)
            .where(
                CartLineModel.status == PENDING,
                CartLineModel.created_at < created_before,
            )
            .values(status=ABANDONED, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def mark_converted(
        self,
        order_id: int,
        now: datetime,
        session_id: str | None = None,
        user_id: int | None = None,
        user_email: str | None = None,
        product_ids: Iterable[int] = (),
    ) -> int:
        """
        UPDATE ... WHERE (klucz1 OR klucz2 ...) AND status IN (pending, abandoned).
        Bez zadnego klucza nic nie jest wykonywane (zwraca 0).
        """
        conditions = []
        if session_id:
            conditions.append(CartLineModel.session_id == session_id)
        if user_id:
            conditions.append(CartLineModel.user_id == user_id)
        if user_email:
            conditions.append(CartLineModel.user_email == user_email)
        product_ids = list(product_ids)
        if product_ids:
            conditions.append(CartLineModel.product_id.in_(product_ids))

        if not conditions:
            return 0

        result = self.db.execute(
            update(CartLineModel)
            .where(
                or_(*conditions),
                CartLineModel.status.in_([PENDING, ABANDONED]),
            )
            .values(
                status=CONVERTED,
                converted_at=now,
                order_id=order_id,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def delete_created_before(self, cutoff: datetime) -> int:
        # created_at <= granica, rekord dokladnie na granicy jest usuwany
        result = self.db.execute(
            delete(CartLineModel)
            .where(CartLineModel.created_at <= cutoff)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    # =====================================================
    # STATYSTYKI
    # =====================================================
    def status_counts(self, since: datetime) -> dict[str, int]:
        rows = self.db.execute(
            select(CartLineModel.status, func.count(CartLineModel.id))
            .where(CartLineModel.created_at >= since)
            .group_by(CartLineModel.status)
        ).all()
        return {status: count for status, count in rows}

    def revenue_by_status(self, since: datetime, status: str):
        return self.db.execute(
            select(func.coalesce(func.sum(CartLineModel.cart_total), 0))
            .where(
                CartLineModel.status == status,
                CartLineModel.created_at >= since,
            )
        ).scalar_one()

    def daily_breakdown(self, since: datetime):
        day = func.date(CartLineModel.created_at)

        def _count_status(status: str):
            return func.sum(case((CartLineModel.status == status, 1), else_=0))

        return self.db.execute(
            select(
                day.label("date"),
                func.count(CartLineModel.id).label("total"),
                _count_status(ABANDONED).label("abandoned"),
                _count_status(CONVERTED).label("converted"),
                _count_status(PENDING).label("pending"),
            )
            .where(CartLineModel.created_at >= since)
            .group_by(day)
            .order_by(day.desc())
        ).all()

    def top_abandoned_products(self, since: datetime, limit: int = 10):
        line_count = func.count(CartLineModel.id).label("line_count")
        return self.db.execute(
            select(
                CartLineModel.product_id,
                CartLineModel.product_name,
                line_count,
                func.coalesce(func.sum(CartLineModel.cart_total), 0).label("lost_revenue"),
            )
            .where(
                CartLineModel.status == ABANDONED,
                CartLineModel.created_at >= since,
            )
            .group_by(CartLineModel.product_id, CartLineModel.product_name)
            .order_by(line_count.desc(), CartLineModel.product_id)
            .limit(limit)
        ).all()

    # =====================================================
    # TRANSAKCJE
    # =====================================================
    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
