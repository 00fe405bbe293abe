# cart_tracker/services/product_client.py
import requests
from requests import RequestException

from cart_tracker.utils.retry import http_retry
from cart_tracker.utils.settings import PRODUCT_SERVICE_URL
from cart_tracker.utils.logging import get_logger

logger = get_logger(__name__)


class ProductClient:
    """Katalog produktow: product_id -> nazwa i cena jednostkowa."""

    def __init__(self, base_url: str | None = None, timeout: int = 2):
        self.base_url = (base_url or PRODUCT_SERVICE_URL).rstrip("/")
        self.timeout = timeout

    @http_retry()
    def fetch_product(self, product_id: int) -> dict | None:
        url = f"{self.base_url}/products/{product_id}"
        logger.info(f"ProductClient GET {url}")

        resp = requests.get(url, timeout=self.timeout)
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return resp.json()

    def lookup_product(self, product_id: int) -> dict | None:
        """
        Jak fetch_product, ale bez wyjatkow.
        Brak produktu albo niedostepny katalog -> None.
        """
        try:
            return self.fetch_product(product_id)
        except RequestException as e:
            logger.warning(f"Product lookup failed for {product_id}: {e}")
            return None
