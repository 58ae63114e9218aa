"""Entity models: User, Provider, Journey, Booking.

Each entity owns an embedded :class:`Meta` and maps itself to and from a
flat storage row (``to_row`` / ``from_row``). Nested value objects
(address, rating, passengers, ...) are stored as JSON columns. Derived
values (average review rating, remaining spots) are computed fields so
they appear in views but are never stored.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, ClassVar

from pydantic import BaseModel, Field, computed_field

from kizuna.domain.lifecycle import (
    BookingStatus,
    JourneyStatus,
    PaymentStatus,
    ProviderStatus,
    UserStatus,
)
from kizuna.domain.meta import Meta, from_iso, to_iso, utc_now
from kizuna.domain.pricing import booking_total
from kizuna.domain.roles import Role

_RATING_BUCKETS: tuple[str, ...] = ("one", "two", "three", "four", "five")


def _dump(model: BaseModel | None) -> Any:
    return None if model is None else model.model_dump(mode="json")


def _dump_all(models: list[Any]) -> list[dict[str, Any]]:
    return [m.model_dump(mode="json") for m in models]


# ---------------------------------------------------------------------------
# Entity base
# ---------------------------------------------------------------------------


class Entity(BaseModel):
    """Common base: an ID plus the embedded Meta record."""

    kind: ClassVar[str] = ""

    id: str
    meta: Meta = Field(default_factory=Meta)

    @property
    def is_deleted(self) -> bool:
        return self.meta.is_deleted

    def soft_delete(self, actor_id: str | None, now: datetime | None = None) -> None:
        self.meta.soft_delete(actor_id, now)

    def restore(self) -> None:
        self.meta.restore()

    def to_view(self) -> dict[str, Any]:
        """JSON-safe representation returned in ServiceResult data."""
        return self.model_dump(mode="json")

    def to_row(self) -> dict[str, Any]:
        raise NotImplementedError

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Any:
        raise NotImplementedError


# ---------------------------------------------------------------------------
# User
# ---------------------------------------------------------------------------


class User(Entity):
    """A person who logs in: customer, guide, or staff member."""

    kind: ClassVar[str] = "user"

    email: str
    first_name: str = ""
    last_name: str = ""
    phone: str | None = None
    role: Role = Role.CUSTOMER
    status: UserStatus = UserStatus.PENDING

    def soft_delete(self, actor_id: str | None, now: datetime | None = None) -> None:
        super().soft_delete(actor_id, now)
        self.status = UserStatus.INACTIVE

    def restore(self) -> None:
        super().restore()
        self.status = UserStatus.PENDING

    def to_row(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "phone": self.phone,
            "role": str(self.role),
            "status": str(self.status),
            **self.meta.to_columns(),
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> User:
        return cls(
            id=row["id"],
            email=row["email"],
            first_name=row["first_name"] or "",
            last_name=row["last_name"] or "",
            phone=row["phone"],
            role=row["role"],
            status=row["status"],
            meta=Meta.from_columns(row),
        )


# ---------------------------------------------------------------------------
# Provider
# ---------------------------------------------------------------------------


class Address(BaseModel):
    street: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None


class ProviderContact(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    website: str | None = None


class Rating(BaseModel):
    """Aggregated 1–5 star rating with per-star buckets."""

    average: float = 0.0
    count: int = 0
    breakdown: dict[str, int] = Field(default_factory=lambda: dict.fromkeys(_RATING_BUCKETS, 0))

    def add(self, value: int) -> None:
        """Record one rating of *value* stars (1–5) and recompute the average.

        Raises:
            ValueError: If *value* is not an integer from 1 to 5.
        """
        if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 5:
            raise ValueError("Rating must be an integer between 1 and 5")
        bucket = _RATING_BUCKETS[value - 1]
        self.breakdown[bucket] = self.breakdown.get(bucket, 0) + 1
        self.count += 1
        self.recompute()

    def recompute(self) -> None:
        """Weighted mean of the buckets. A manually set average survives while count is 0."""
        if self.count <= 0:
            return
        weighted = sum(
            self.breakdown.get(bucket, 0) * stars
            for stars, bucket in enumerate(_RATING_BUCKETS, start=1)
        )
        self.average = round(weighted / self.count, 2)


class ProviderCapacity(BaseModel):
    max_guests: int | None = None
    current_bookings: int = 0


class Provider(Entity):
    """A supplier of services (hotel, transport, ...) referenced by journeys."""

    kind: ClassVar[str] = "provider"

    name: str
    legal_name: str | None = None
    description: str | None = None
    type: str
    status: ProviderStatus = ProviderStatus.PENDING
    is_verified: bool = False
    rating: Rating = Field(default_factory=Rating)
    address: Address = Field(default_factory=Address)
    contact: ProviderContact = Field(default_factory=ProviderContact)
    capacity: ProviderCapacity = Field(default_factory=ProviderCapacity)

    def update_capacity(self, delta: int) -> None:
        self.capacity.current_bookings = max(0, self.capacity.current_bookings + delta)

    def to_row(self) -> dict[str, Any]:
        self.rating.recompute()
        return {
            "id": self.id,
            "name": self.name,
            "legal_name": self.legal_name,
            "description": self.description,
            "type": self.type,
            "status": str(self.status),
            "is_verified": self.is_verified,
            "rating_average": self.rating.average,
            "rating_count": self.rating.count,
            "rating_breakdown": dict(self.rating.breakdown),
            "address": _dump(self.address),
            "contact": _dump(self.contact),
            "max_guests": self.capacity.max_guests,
            "current_bookings": self.capacity.current_bookings,
            **self.meta.to_columns(),
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Provider:
        return cls(
            id=row["id"],
            name=row["name"],
            legal_name=row["legal_name"],
            description=row["description"],
            type=row["type"],
            status=row["status"],
            is_verified=bool(row["is_verified"]),
            rating=Rating(
                average=row["rating_average"] or 0.0,
                count=row["rating_count"] or 0,
                breakdown=row["rating_breakdown"] or dict.fromkeys(_RATING_BUCKETS, 0),
            ),
            address=Address.model_validate(row["address"] or {}),
            contact=ProviderContact.model_validate(row["contact"] or {}),
            capacity=ProviderCapacity(
                max_guests=row["max_guests"],
                current_bookings=row["current_bookings"] or 0,
            ),
            meta=Meta.from_columns(row),
        )


# ---------------------------------------------------------------------------
# Journey
# ---------------------------------------------------------------------------


class Duration(BaseModel):
    days: int = Field(ge=1)
    nights: int = Field(default=0, ge=0)


class Destination(BaseModel):
    name: str
    country: str | None = None
    city: str | None = None


class Pricing(BaseModel):
    base_price: float
    currency: str = "USD"


class JourneyCapacity(BaseModel):
    min_participants: int = 1
    max_participants: int = 20
    current_bookings: int = 0


class Schedule(BaseModel):
    start_date: date | None = None
    end_date: date | None = None


class ItineraryDay(BaseModel):
    day: int = Field(ge=1)
    title: str
    description: str | None = None


class GuideNote(BaseModel):
    content: str
    type: str = "general"
    guide_id: str | None = None
    timestamp: datetime = Field(default_factory=utc_now)


class Review(BaseModel):
    user_id: str | None = None
    rating: int = Field(ge=1, le=5)
    comment: str | None = None
    date: datetime = Field(default_factory=utc_now)


class Journey(Entity):
    """A sellable trip with pricing, capacity, schedule, and an assigned guide."""

    kind: ClassVar[str] = "journey"

    name: str
    description: str
    short_description: str | None = None
    category: str | None = None
    type: str = "guided"
    duration: Duration
    destinations: list[Destination] = Field(default_factory=list)
    pricing: Pricing
    capacity: JourneyCapacity = Field(default_factory=JourneyCapacity)
    schedule: Schedule = Field(default_factory=Schedule)
    guide_id: str | None = None
    provider_id: str | None = None
    status: JourneyStatus = JourneyStatus.DRAFT
    itinerary: list[ItineraryDay] = Field(default_factory=list)
    assignment_notes: str | None = None
    guide_notes: list[GuideNote] = Field(default_factory=list)
    reviews: list[Review] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def average_rating(self) -> float:
        if not self.reviews:
            return 0.0
        return round(sum(r.rating for r in self.reviews) / len(self.reviews), 1)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def remaining_spots(self) -> int:
        return max(0, self.capacity.max_participants - self.capacity.current_bookings)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_available(self) -> bool:
        return self.status == JourneyStatus.ACTIVE and self.remaining_spots > 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_overbooked(self) -> bool:
        return self.capacity.current_bookings > self.capacity.max_participants

    def update_capacity(self, delta: int) -> None:
        """Shift ``current_bookings`` by *delta*, never below zero.

        There is no upper clamp: a journey may end up overbooked.
        """
        self.capacity.current_bookings = max(0, self.capacity.current_bookings + delta)

    def add_review(
        self,
        rating: int,
        *,
        user_id: str | None = None,
        comment: str | None = None,
        now: datetime | None = None,
    ) -> Review:
        review = Review(user_id=user_id, rating=rating, comment=comment, date=now or utc_now())
        self.reviews.append(review)
        return review

    def add_guide_note(
        self,
        content: str,
        *,
        guide_id: str | None,
        note_type: str = "general",
        now: datetime | None = None,
    ) -> GuideNote:
        note = GuideNote(
            content=content, type=note_type, guide_id=guide_id, timestamp=now or utc_now()
        )
        self.guide_notes.append(note)
        return note

    def to_row(self) -> dict[str, Any]:
        start = self.schedule.start_date
        end = self.schedule.end_date
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "short_description": self.short_description,
            "category": self.category,
            "type": self.type,
            "duration_days": self.duration.days,
            "duration_nights": self.duration.nights,
            "destinations": _dump_all(self.destinations),
            "base_price": self.pricing.base_price,
            "currency": self.pricing.currency,
            "min_participants": self.capacity.min_participants,
            "max_participants": self.capacity.max_participants,
            "current_bookings": self.capacity.current_bookings,
            "start_date": start.isoformat() if start else None,
            "end_date": end.isoformat() if end else None,
            "guide_id": self.guide_id,
            "provider_id": self.provider_id,
            "status": str(self.status),
            "itinerary": _dump_all(self.itinerary),
            "assignment_notes": self.assignment_notes,
            "guide_notes": _dump_all(self.guide_notes),
            "reviews": _dump_all(self.reviews),
            **self.meta.to_columns(),
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Journey:
        return cls(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            short_description=row["short_description"],
            category=row["category"],
            type=row["type"],
            duration=Duration(days=row["duration_days"], nights=row["duration_nights"] or 0),
            destinations=row["destinations"] or [],
            pricing=Pricing(base_price=row["base_price"], currency=row["currency"]),
            capacity=JourneyCapacity(
                min_participants=row["min_participants"],
                max_participants=row["max_participants"],
                current_bookings=row["current_bookings"] or 0,
            ),
            schedule=Schedule(start_date=row["start_date"], end_date=row["end_date"]),
            guide_id=row["guide_id"],
            provider_id=row["provider_id"],
            status=row["status"],
            itinerary=row["itinerary"] or [],
            assignment_notes=row["assignment_notes"],
            guide_notes=row["guide_notes"] or [],
            reviews=row["reviews"] or [],
            meta=Meta.from_columns(row),
        )


# ---------------------------------------------------------------------------
# Booking
# ---------------------------------------------------------------------------


class Passenger(BaseModel):
    model_config = {"extra": "forbid"}

    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    date_of_birth: date
    passport_number: str | None = None
    nationality: str | None = None
    special_requirements: str | None = None


class Booking(Entity):
    """A customer's reservation on a journey for a travel date."""

    kind: ClassVar[str] = "booking"

    customer_id: str | None = None
    journey_id: str
    guide_id: str | None = None
    travel_date: datetime
    return_date: datetime | None = None
    participants: int = 1
    passengers: list[Passenger] = Field(default_factory=list)
    base_price: float = 0.0
    discount: float = 0.0
    tax: float = 0.0
    total_price: float = 0.0
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_method: str | None = None
    payment_date: datetime | None = None
    transaction_id: str | None = None
    status: BookingStatus = BookingStatus.PENDING
    contact_email: str | None = None
    contact_phone: str | None = None
    special_requests: str | None = None
    notes: str | None = None
    cancellation_reason: str | None = None
    cancellation_date: datetime | None = None

    def reprice(self, unit_price: float) -> None:
        """Recompute ``total_price`` from a (live) unit price.

        Raises:
            ValueError: If the components produce an invalid total.
        """
        self.total_price = booking_total(
            unit_price, self.participants, discount=self.discount, tax=self.tax
        )
        self.base_price = unit_price

    def cancel(self, reason: str | None, now: datetime | None = None) -> None:
        self.status = BookingStatus.CANCELLED
        self.cancellation_reason = reason
        self.cancellation_date = now or utc_now()

    def to_row(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "journey_id": self.journey_id,
            "guide_id": self.guide_id,
            "travel_date": to_iso(self.travel_date),
            "return_date": to_iso(self.return_date),
            "participants": self.participants,
            "passengers": _dump_all(self.passengers),
            "base_price": self.base_price,
            "discount": self.discount,
            "tax": self.tax,
            "total_price": self.total_price,
            "payment_status": str(self.payment_status),
            "payment_method": self.payment_method,
            "payment_date": to_iso(self.payment_date),
            "transaction_id": self.transaction_id,
            "status": str(self.status),
            "contact_email": self.contact_email,
            "contact_phone": self.contact_phone,
            "special_requests": self.special_requests,
            "notes": self.notes,
            "cancellation_reason": self.cancellation_reason,
            "cancellation_date": to_iso(self.cancellation_date),
            **self.meta.to_columns(),
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Booking:
        return cls(
            id=row["id"],
            customer_id=row["customer_id"],
            journey_id=row["journey_id"],
            guide_id=row["guide_id"],
            travel_date=from_iso(row["travel_date"]),
            return_date=from_iso(row["return_date"]),
            participants=row["participants"],
            passengers=row["passengers"] or [],
            base_price=row["base_price"] or 0.0,
            discount=row["discount"] or 0.0,
            tax=row["tax"] or 0.0,
            total_price=row["total_price"] or 0.0,
            payment_status=row["payment_status"],
            payment_method=row["payment_method"],
            payment_date=from_iso(row["payment_date"]),
            transaction_id=row["transaction_id"],
            status=row["status"],
            contact_email=row["contact_email"],
            contact_phone=row["contact_phone"],
            special_requests=row["special_requests"],
            notes=row["notes"],
            cancellation_reason=row["cancellation_reason"],
            cancellation_date=from_iso(row["cancellation_date"]),
            meta=Meta.from_columns(row),
        )
