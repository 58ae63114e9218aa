"""Enumerations for entity fields that are not lifecycle states.

Values are the stored wire strings; services validate raw input against
these with :func:`is_member` so unknown values surface as INVALID_INPUT
rather than a pydantic exception.
"""

from __future__ import annotations

from enum import StrEnum


class ProviderType(StrEnum):
    """Kind of service a provider supplies."""

    HOTEL = "hotel"
    RESTAURANT = "restaurant"
    TRANSPORT = "transport"
    ACTIVITY = "activity"
    GUIDE = "guide"
    AGENCY = "agency"
    SUPPLIER = "supplier"
    OTHER = "other"


class JourneyCategory(StrEnum):
    ADVENTURE = "adventure"
    CULTURAL = "cultural"
    RELAXATION = "relaxation"
    BUSINESS = "business"
    FAMILY = "family"
    ROMANTIC = "romantic"
    EDUCATIONAL = "educational"
    LUXURY = "luxury"


class JourneyType(StrEnum):
    GUIDED = "guided"
    SELF_GUIDED = "self-guided"
    CUSTOM = "custom"
    GROUP = "group"
    PRIVATE = "private"


class Currency(StrEnum):
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    JPY = "JPY"
    CAD = "CAD"
    AUD = "AUD"


class PaymentMethod(StrEnum):
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    BANK_TRANSFER = "bank_transfer"
    PAYPAL = "paypal"
    CASH = "cash"


class GuideNoteType(StrEnum):
    """Classification for notes a guide attaches to a journey."""

    GENERAL = "general"
    INCIDENT = "incident"
    CUSTOMER = "customer"
    LOGISTICS = "logistics"
    STATUS = "status"


def is_member(enum_cls: type[StrEnum], value: object) -> bool:
    """Return True if *value* is one of *enum_cls*'s string values."""
    return isinstance(value, str) and value in {m.value for m in enum_cls}
