"""
Client for the Paystack transaction initialization API.
"""
import logging
from typing import Any, Dict, Optional

import httpx

from storefront.config import Config
from storefront.exceptions import GatewayInitError

logger = logging.getLogger(__name__)


class PaystackClient:
    """Calls Paystack with the server-side secret key"""

    def __init__(
        self,
        secret_key: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.secret_key = secret_key or Config.PAYSTACK_SECRET_KEY
        self.base_url = (base_url or Config.PAYSTACK_BASE_URL).rstrip("/")
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=Config.HTTP_TIMEOUT_SECONDS,
            transport=self.transport,
            headers={
                "Authorization": f"Bearer {self.secret_key}",
                "Content-Type": "application/json",
            },
        )

    async def initialize_transaction(
        self,
        email: str,
        amount: int,
        reference: Optional[str] = None,
        firstname: Optional[str] = None,
        lastname: Optional[str] = None,
        phone: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Initialize a transaction and return its access code.

        Raises:
            GatewayInitError: If Paystack answers with ``status: false``
        """
        payload = {
            "email": email,
            "amount": amount,
            "currency": Config.PAYSTACK_CURRENCY,
            "reference": reference,
            "firstname": firstname,
            "lastname": lastname,
            "phone": phone,
            "metadata": metadata or {},
        }

        async with self._client() as client:
            response = await client.post("/transaction/initialize", json=payload)
        data = response.json()

        if not data.get("status"):
            message = data.get("message") or "Paystack initialization failed"
            logger.warning(
                f"Paystack rejected initialization: {message}",
                extra={"status_code": response.status_code, "reference": reference}
            )
            raise GatewayInitError(message)

        return data["data"]["access_code"]


# Global Paystack client instance
_paystack_client: Optional[PaystackClient] = None

def get_paystack_client() -> PaystackClient:
    """Get or create Paystack client instance (singleton)"""
    global _paystack_client
    if _paystack_client is None:
        _paystack_client = PaystackClient()
    return _paystack_client
