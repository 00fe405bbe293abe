# cart_tracker/services/order_client.py
import requests
from requests import RequestException

from cart_tracker.domain.schemas import OrderSnapshot
from cart_tracker.utils.retry import http_retry
from cart_tracker.utils.settings import ORDER_SERVICE_URL
from cart_tracker.utils.logging import get_logger

logger = get_logger(__name__)


class OrderClient:
    def __init__(self, base_url: str | None = None, timeout: int = 2):
        self.base_url = (base_url or ORDER_SERVICE_URL).rstrip("/")
        self.timeout = timeout

    @http_retry()
    def fetch_order(self, order_id: int) -> dict | None:
        url = f"{self.base_url}/orders/{order_id}"
        logger.info(f"OrderClient GET {url}")

        resp = requests.get(url, timeout=self.timeout)
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return resp.json()

    def get_order(self, order_id: int) -> OrderSnapshot | None:
        """
        Zamowienie sprowadzone do kluczy dopasowania:
        user_id, billing_email i lista product_id z pozycji.
        """
        try:
            data = self.fetch_order(order_id)
        except RequestException as e:
            logger.warning(f"Order lookup failed for {order_id}: {e}")
            return None

        if not data:
            return None

        product_ids = [
            item["product_id"]
            for item in data.get("items", [])
            if item.get("product_id")
        ]

        return OrderSnapshot(
            order_id=order_id,
            user_id=data.get("user_id") or None,
            billing_email=data.get("billing_email") or None,
            product_ids=product_ids,
        )
