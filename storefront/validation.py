"""
Checkout form validation.

Each field has a single validator that checks its rules in order, so an
invalid field always yields exactly one message.
"""
import re
from typing import Dict, Optional, Tuple

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ValidationError, field_validator
from pydantic_core import PydanticCustomError

NIGERIAN_STATES = (
    "Abia",
    "Adamawa",
    "Akwa Ibom",
    "Anambra",
    "Bauchi",
    "Bayelsa",
    "Benue",
    "Borno",
    "Cross River",
    "Delta",
    "Ebonyi",
    "Edo",
    "Ekiti",
    "Enugu",
    "FCT - Abuja",
    "Gombe",
    "Imo",
    "Jigawa",
    "Kaduna",
    "Kano",
    "Katsina",
    "Kebbi",
    "Kogi",
    "Kwara",
    "Lagos",
    "Nasarawa",
    "Niger",
    "Ogun",
    "Ondo",
    "Osun",
    "Oyo",
    "Plateau",
    "Rivers",
    "Sokoto",
    "Taraba",
    "Yobe",
    "Zamfara",
)

NIGERIAN_PHONE_PATTERN = re.compile(r"^(\+?234|0)[789]\d{9}$")
MIN_PHONE_LENGTH = 10

# Form field name -> model attribute
FORM_FIELDS = {
    "firstName": "first_name",
    "lastName": "last_name",
    "email": "email",
    "phone": "phone",
    "address": "address",
    "city": "city",
    "state": "state",
}


def _length_between(value: str, minimum: int, maximum: int, label: str, error_type: str) -> str:
    if len(value) < minimum:
        raise PydanticCustomError(error_type, f"{label} must be at least {minimum} characters")
    if len(value) > maximum:
        raise PydanticCustomError(error_type, f"{label} too long")
    return value


class CheckoutForm(BaseModel):
    """Customer contact and delivery details collected at checkout"""
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    state: str = ""

    @field_validator("first_name")
    @classmethod
    def check_first_name(cls, v: str) -> str:
        return _length_between(v, 2, 50, "First name", "first_name")

    @field_validator("last_name")
    @classmethod
    def check_last_name(cls, v: str) -> str:
        return _length_between(v, 2, 50, "Last name", "last_name")

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        try:
            validate_email(v, check_deliverability=False)
        except EmailNotValidError:
            raise PydanticCustomError("email", "Please enter a valid email address")
        return v

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v: str) -> str:
        # Strict Nigerian mobile format, or any sufficiently long number
        if NIGERIAN_PHONE_PATTERN.match(v) or len(v) >= MIN_PHONE_LENGTH:
            return v
        raise PydanticCustomError("phone", "Enter a valid Nigerian phone number")

    @field_validator("address")
    @classmethod
    def check_address(cls, v: str) -> str:
        if len(v) < 5:
            raise PydanticCustomError("address", "Please enter your delivery address")
        return v

    @field_validator("city")
    @classmethod
    def check_city(cls, v: str) -> str:
        if len(v) < 2:
            raise PydanticCustomError("city", "City is required")
        return v

    @field_validator("state")
    @classmethod
    def check_state(cls, v: str) -> str:
        if len(v) < 2:
            raise PydanticCustomError("state", "State is required")
        if v not in NIGERIAN_STATES:
            raise PydanticCustomError("state", "Please select a valid state")
        return v

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def delivery_address(self) -> str:
        return f"{self.address}, {self.city}, {self.state}"


def validate_checkout_form(data: Dict[str, str]) -> Tuple[Optional[CheckoutForm], Dict[str, str]]:
    """
    Validate raw form data keyed by form field name (``firstName`` etc).

    Returns the parsed form and an empty dict on success, or ``None`` and one
    error message per invalid form field.
    """
    values = {attr: data.get(name, "") for name, attr in FORM_FIELDS.items()}
    try:
        return CheckoutForm(**values), {}
    except ValidationError as e:
        attr_to_field = {attr: name for name, attr in FORM_FIELDS.items()}
        errors: Dict[str, str] = {}
        for error in e.errors():
            field = attr_to_field.get(str(error["loc"][0]), str(error["loc"][0]))
            errors.setdefault(field, error["msg"])
        return None, errors
