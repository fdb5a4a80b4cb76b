# medcart/services/product_client.py
import requests
from requests import RequestException

from medcart.domain.errors import ProductLookupError
from medcart.utils.logging import get_logger
from medcart.utils.retry import http_retry
from medcart.utils.settings import PRODUCT_SERVICE_URL

logger = get_logger(__name__)


class ProductClient:
    def __init__(self, base_url: str | None = None, timeout: int = 2):
        self.base_url = (base_url or PRODUCT_SERVICE_URL).rstrip("/")
        self.timeout = timeout

    @http_retry()
    def _get(self, url: str, params: dict) -> requests.Response:
        logger.info(f"ProductClient GET {url} {params}")
        return requests.get(url, params=params, timeout=self.timeout)

    def fetch_product(self, product_id: str, dosage: str = "") -> dict:
        """Return name/brand/price/flags for one product variant."""
        url = f"{self.base_url}/products/{product_id}"
        params = {"dosage": dosage} if dosage else {}

        try:
            resp = self._get(url, params)
            resp.raise_for_status()
            return resp.json()
        except RequestException as e:
            logger.error(f"Product lookup failed for {product_id} ({dosage}): {e}")
            raise ProductLookupError(f"Product {product_id} unavailable") from e
