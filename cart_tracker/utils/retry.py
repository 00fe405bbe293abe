# cart_tracker/utils/retry.py
import logging

import requests
from tenacity import before_sleep_log, retry, retry_if_exception, stop_after_attempt, wait_exponential

from cart_tracker.utils.settings import HTTP_RETRY_ATTEMPTS
from cart_tracker.utils.logging import get_logger

logger = get_logger(__name__)


def _is_transient(exc: BaseException) -> bool:
    """Bledy sieci i 5xx powtarzamy, 4xx od razu oddajemy wywolujacemu."""
    if isinstance(exc, requests.HTTPError):
        response = exc.response
        return response is None or response.status_code >= 500
    return isinstance(exc, requests.RequestException)


def http_retry(attempts: int | None = None):
    return retry(
        reraise=True,
        stop=stop_after_attempt(attempts or HTTP_RETRY_ATTEMPTS),
        wait=wait_exponential(multiplier=0.3, min=0.3, max=3),
        retry=retry_if_exception(_is_transient),
        before_sleep=before_sleep_log(logger, logging.WARNING),
    )
