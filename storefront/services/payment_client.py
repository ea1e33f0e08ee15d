# storefront/services/payment_client.py
import requests
from requests import RequestException

from storefront.domain.errors import PaymentFailed
from storefront.utils.settings import (
    PAYMENT_API_KEY,
    PAYMENT_API_URL,
    PAYMENT_CURRENCY,
    PAYMENT_TIMEOUT_SECONDS,
)
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class PaymentClient:
    """
    Autoryzacja platnosci u zewnetrznego dostawcy.
    Celowo BEZ retry - powtorzenie obciazenia karty to nie jest cos co robimy automatycznie.
    """

    def __init__(
        self,
        api_url: str | None = None,
        api_key: str | None = None,
        timeout: float = PAYMENT_TIMEOUT_SECONDS,
        currency: str = PAYMENT_CURRENCY,
    ):
        self.api_url = api_url or PAYMENT_API_URL
        self.api_key = api_key if api_key is not None else PAYMENT_API_KEY
        self.timeout = timeout
        self.currency = currency

    def authorize(self, amount_cents: int, token: str) -> None:
        logger.info(f"PaymentClient POST {self.api_url} amount={amount_cents} {self.currency}")
        try:
            resp = requests.post(
                self.api_url,
                headers={"Authorization": f"Bearer {self.api_key}"},
                data={
                    "amount": amount_cents,
                    "currency": self.currency,
                    "source": token,
                },
                timeout=self.timeout,
            )
        except RequestException as e:
            logger.error(f"Payment request failed: {e}")
            raise PaymentFailed(str(e), amount_cents) from e

        if not resp.ok:
            logger.warning(f"Payment rejected with status {resp.status_code}")
            raise PaymentFailed(f"HTTP {resp.status_code}", amount_cents)
