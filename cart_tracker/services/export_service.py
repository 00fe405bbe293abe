# cart_tracker/services/export_service.py
import csv
import io
from datetime import date

from sqlalchemy.orm import Session

from cart_tracker.repos.cart_line_repo import CartLineRepo
from cart_tracker.utils.logging import get_logger

logger = get_logger(__name__)

# kolejnosc naglowkow = kolejnosc kolumn w wierszu
CSV_HEADERS = [
    "ID", "Session ID", "User ID", "User Email", "Product ID", "Product Name",
    "Quantity", "Price", "Cart Total", "Status", "User Agent", "IP Address",
    "Created At", "Updated At", "Converted At", "Order ID",
]


def _cell(value):
    if value is None:
        return ""
    return value


class ExportService:
    def __init__(self, db: Session):
        self.repo = CartLineRepo(db)

    @staticmethod
    def filename(today: date | None = None) -> str:
        today = today or date.today()
        return f"abandoned-carts-{today.isoformat()}.csv"

    def export_csv(self) -> str:
        """Wszystkie rekordy, od najnowszych."""
        lines = self.repo.list_all()

        buf = io.StringIO()
        writer = csv.writer(buf)
        writer.writerow(CSV_HEADERS)

        for line in lines:
            writer.writerow([
                _cell(v) for v in (
                    line.id, line.session_id, line.user_id, line.user_email,
                    line.product_id, line.product_name, line.quantity, line.price,
                    line.cart_total, line.status, line.user_agent, line.ip_address,
                    line.created_at, line.updated_at, line.converted_at, line.order_id,
                )
            ])

        logger.info(f"Exported {len(lines)} cart lines to CSV")
        return buf.getvalue()
