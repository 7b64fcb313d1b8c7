# silkthread/schemas/checkout.py
import re

from pydantic import ConfigDict, EmailStr, field_validator
from sqlmodel import SQLModel

PHONE_RE = re.compile(r"^[+]?[\d\s-]{10,}$")


class CustomerInfo(SQLModel):
    """
    Delivery details collected on the checkout page.

    Validation rules:
      - name, phone, address are required and cannot be blank
      - phone: optional leading '+', then at least 10 digits/spaces/dashes
      - email is optional but must be valid when given
    """

    model_config = ConfigDict(extra="forbid")

    name: str
    phone: str
    email: EmailStr | None = None
    address: str

    @field_validator("name", "address")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v

    @field_validator("phone")
    @classmethod
    def valid_phone(cls, v: str) -> str:
        v = v.strip()
        if not PHONE_RE.match(v):
            raise ValueError("Please enter a valid phone number")
        return v

    @field_validator("email", mode="before")
    @classmethod
    def blank_email(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class CheckoutRead(SQLModel):
    """
    Result of a WhatsApp checkout: the rendered message and the link
    the storefront opens.
    """

    message: str
    whatsapp_url: str
    total: float
