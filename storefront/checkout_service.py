"""
Checkout orchestration: validates the customer's details, initializes a
payment through the local proxy endpoint, hands off to the hosted payment UI
and reacts to its outcome.

The cart is only ever cleared from the payment success callback. The
callback is the sole evidence that a payment happened; there is no
server-side verification of the transaction.
"""
import asyncio
import logging
import secrets
import string
import time
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Protocol

import httpx

from storefront import pricing
from storefront.cart_service import CartStore
from storefront.config import Config
from storefront.confirmation import confirmation_url
from storefront.validation import FORM_FIELDS, CheckoutForm, validate_checkout_form

logger = logging.getLogger(__name__)

CART_PATH = "/cart"
INITIALIZE_PATH = "/api/paystack"

GATEWAY_NOT_READY_MESSAGE = "Payment gateway not ready. Please refresh the page."
GATEWAY_LOAD_FAILED_MESSAGE = "Could not load payment gateway. Check your connection and refresh."
INIT_FAILED_MESSAGE = "Could not initialize payment. Please try again."
GENERIC_FAILURE_MESSAGE = "Something went wrong. Please try again."

_BASE36 = string.digits + string.ascii_uppercase


class CheckoutState(Enum):
    EDITING = "EDITING"
    VALIDATING = "VALIDATING"
    SUBMITTING = "SUBMITTING"
    AWAITING_GATEWAY_INIT = "AWAITING_GATEWAY_INIT"
    AWAITING_USER_PAYMENT = "AWAITING_USER_PAYMENT"
    PAYMENT_SUCCEEDED = "PAYMENT_SUCCEEDED"


class TransactionOutcome(Enum):
    PENDING = "PENDING"
    SUCCEEDED = "SUCCEEDED"
    CANCELLED = "CANCELLED"


@dataclass
class Transaction:
    """One payment attempt"""
    reference: str
    amount_minor_units: int
    total: Decimal
    access_code: Optional[str] = None
    outcome: TransactionOutcome = TransactionOutcome.PENDING
    gateway_reference: Optional[str] = None


@dataclass
class PaymentCallbacks:
    on_success: Callable[[Mapping[str, Any]], None]
    on_cancel: Callable[[], None]


class HostedPaymentUI(Protocol):
    """Gateway-rendered payment surface; calls exactly one callback, once"""

    def resume_transaction(self, access_code: str, callbacks: PaymentCallbacks) -> None:
        ...


def to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def generate_reference() -> str:
    """Client-side transaction reference, e.g. ``QS-M1ABCDEF-7XK2QP``"""
    timestamp = to_base36(int(time.time() * 1000))
    random_part = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"QS-{timestamp}-{random_part}"


def build_initialize_request(form: CheckoutForm, reference: str, amount: int, items_count: int) -> Dict[str, Any]:
    """Body for the local initialization endpoint"""
    return {
        "email": form.email,
        "amount": amount,
        "ref": reference,
        "firstname": form.first_name,
        "lastname": form.last_name,
        "phone": form.phone,
        "metadata": {
            "custom_fields": [
                {
                    "display_name": "Customer Name",
                    "variable_name": "customer_name",
                    "value": form.full_name,
                },
                {
                    "display_name": "Delivery Address",
                    "variable_name": "delivery_address",
                    "value": form.delivery_address,
                },
                {
                    "display_name": "Phone Number",
                    "variable_name": "phone_number",
                    "value": form.phone,
                },
                {
                    "display_name": "Items Count",
                    "variable_name": "items_count",
                    "value": str(items_count),
                },
            ],
        },
    }


class TransactionInitializer:
    """Posts initialization requests to the storefront's proxy endpoint"""

    def __init__(self, base_url: Optional[str] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url or Config.STOREFRONT_API_URL
        self.transport = transport

    async def initialize(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Return the endpoint's JSON body whatever its status code"""
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=Config.HTTP_TIMEOUT_SECONDS,
            transport=self.transport,
        ) as client:
            response = await client.post(INITIALIZE_PATH, json=payload)
        return response.json()


class CheckoutOrchestrator:
    """State machine over the checkout form and a single payment attempt"""

    def __init__(
        self,
        cart: CartStore,
        initializer: TransactionInitializer,
        payment_ui: HostedPaymentUI,
        navigate: Callable[[str], None],
    ):
        self.cart = cart
        self.initializer = initializer
        self.payment_ui = payment_ui
        self.navigate = navigate

        self.form: Dict[str, str] = {name: "" for name in FORM_FIELDS}
        self.errors: Dict[str, str] = {}
        self.state = CheckoutState.EDITING
        self.alert: Optional[str] = None
        self.banner: Optional[str] = None
        self.transaction: Optional[Transaction] = None

        self.gateway_ready = False
        self.gateway_failed = False
        # Sticky: the cart is empty after a successful payment
        self.payment_succeeded = False

        self._outcome: Optional[asyncio.Future] = None

    @property
    def is_loading(self) -> bool:
        return self.state in (
            CheckoutState.SUBMITTING,
            CheckoutState.AWAITING_GATEWAY_INIT,
            CheckoutState.AWAITING_USER_PAYMENT,
        )

    @property
    def can_submit(self) -> bool:
        return (
            self.state == CheckoutState.EDITING
            and self.gateway_ready
            and not self.gateway_failed
        )

    def enter(self) -> bool:
        """Entry guard; sends the customer back to the cart when there is nothing to pay for"""
        if self.cart.is_empty() and not self.payment_succeeded:
            self.navigate(CART_PATH)
            return False
        return True

    def mark_gateway_ready(self) -> None:
        self.gateway_ready = True

    def mark_gateway_failed(self) -> None:
        self.gateway_failed = True
        self.banner = GATEWAY_LOAD_FAILED_MESSAGE
        logger.error("Hosted payment UI failed to load")

    def update_field(self, name: str, value: str) -> None:
        if name not in FORM_FIELDS:
            raise KeyError(f"Unknown checkout field: {name}")
        self.form[name] = value
        self.errors.pop(name, None)

    def validate(self) -> Optional[CheckoutForm]:
        self.state = CheckoutState.VALIDATING
        form, errors = validate_checkout_form(self.form)
        self.errors = errors
        if form is None:
            self.state = CheckoutState.EDITING
        return form

    def _back_to_editing(self, alert: Optional[str] = None) -> CheckoutState:
        self.state = CheckoutState.EDITING
        self.alert = alert
        return self.state

    async def submit(self) -> CheckoutState:
        """
        Run one checkout attempt and wait for the hosted UI's outcome.

        Returns the resulting state: ``PAYMENT_SUCCEEDED`` or ``EDITING``.
        A submit while another attempt is in flight is ignored.
        """
        if self.state != CheckoutState.EDITING:
            return self.state

        self.alert = None
        if self.gateway_failed:
            return self._back_to_editing(GATEWAY_LOAD_FAILED_MESSAGE)

        form = self.validate()
        if form is None:
            return self.state

        if not self.gateway_ready:
            return self._back_to_editing(GATEWAY_NOT_READY_MESSAGE)

        self.state = CheckoutState.SUBMITTING
        order_total = self.cart.get_total()
        self.transaction = Transaction(
            reference=generate_reference(),
            amount_minor_units=pricing.to_minor_units(order_total),
            total=order_total,
        )
        payload = build_initialize_request(
            form,
            self.transaction.reference,
            self.transaction.amount_minor_units,
            self.cart.get_item_count(),
        )

        try:
            self.state = CheckoutState.AWAITING_GATEWAY_INIT
            body = await self.initializer.initialize(payload)

            access_code = body.get("access_code") if isinstance(body, dict) else None
            if not access_code:
                message = body.get("error") if isinstance(body, dict) else None
                logger.warning(
                    f"Payment initialization refused: {message}",
                    extra={"reference": self.transaction.reference}
                )
                return self._back_to_editing(message or INIT_FAILED_MESSAGE)

            self.transaction.access_code = access_code
            self.state = CheckoutState.AWAITING_USER_PAYMENT
            self._outcome = asyncio.get_running_loop().create_future()
            self.payment_ui.resume_transaction(
                access_code,
                PaymentCallbacks(on_success=self._on_success, on_cancel=self._on_cancel),
            )
        except Exception as e:
            logger.error(
                f"Payment error: {type(e).__name__}: {e}",
                extra={"reference": self.transaction.reference},
                exc_info=True
            )
            self._outcome = None
            return self._back_to_editing(GENERIC_FAILURE_MESSAGE)

        await self._outcome
        return self.state

    def _resolve(self) -> None:
        if self._outcome is not None and not self._outcome.done():
            self._outcome.set_result(self.state)

    def _on_success(self, transaction: Mapping[str, Any]) -> None:
        if self.state != CheckoutState.AWAITING_USER_PAYMENT:
            return

        reference = transaction["reference"]
        self.transaction.outcome = TransactionOutcome.SUCCEEDED
        self.transaction.gateway_reference = reference

        self.payment_succeeded = True
        self.state = CheckoutState.PAYMENT_SUCCEEDED
        logger.info("Payment succeeded", extra={"reference": reference})

        try:
            self.cart.clear_cart()
        except Exception as e:
            # The payment went through; the receipt must still be shown
            logger.error(
                f"Failed to clear cart after payment: {type(e).__name__}: {e}",
                extra={"reference": reference},
                exc_info=True
            )

        try:
            self.navigate(confirmation_url(
                reference=reference,
                name=self.form["firstName"],
                email=self.form["email"],
                total=pricing.format_amount(self.transaction.total),
            ))
        finally:
            self._resolve()

    def _on_cancel(self) -> None:
        if self.state != CheckoutState.AWAITING_USER_PAYMENT:
            return

        self.transaction.outcome = TransactionOutcome.CANCELLED
        self._back_to_editing()
        logger.info("Payment cancelled", extra={"reference": self.transaction.reference})
        self._resolve()
