"""
Order confirmation receipt built from the checkout redirect's query parameters.

The values are cosmetic: nothing here is signed or verified.
"""
from typing import Mapping
from urllib.parse import urlencode

from pydantic import BaseModel, Field

CONFIRMATION_PATH = "/confirmation"


class Receipt(BaseModel):
    """Receipt shown after a successful payment"""
    reference: str = Field("N/A", description="Gateway transaction reference")
    name: str = Field("Customer", description="Customer first name")
    email: str = Field("", description="Where the receipt was sent")
    total: str = Field("0", description="Amount paid, major units")
    method: str = Field("Paystack (Card/Transfer)", description="Payment method")


def confirmation_url(reference: str, name: str, email: str, total: str) -> str:
    """Navigation target carrying the receipt as plain query parameters"""
    query = urlencode({"ref": reference, "name": name, "email": email, "total": total})
    return f"{CONFIRMATION_PATH}?{query}"


def parse_receipt(params: Mapping[str, str]) -> Receipt:
    values = {
        "reference": params.get("ref"),
        "name": params.get("name"),
        "email": params.get("email"),
        "total": params.get("total"),
    }
    return Receipt(**{k: v for k, v in values.items() if v is not None})
