"""
API request and response models for MakeMyTrip REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
catalog/models.py, which own the internal domain representation. Route
handlers map between the two.

Catalog responses use camelCase field names on the wire (flightName,
pricePerNight, from, to) because the existing front end reads them that way.
"""

from datetime import datetime
from typing import Annotated, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StringConstraints, field_validator
from pydantic.alias_generators import to_camel

from auth.models import User
from catalog.bundles import Bundle, BundleQuote, DiscountDetails, TourGuide
from catalog.inventory import Room, Seat
from catalog.loyalty import LoyaltyAccount, LoyaltyPoint
from catalog.models import Flight, Hotel
from catalog.pricing import PricePoint, PriceQuote
from catalog.reviews import AdminReply, Review

# bcrypt only hashes the first 72 bytes; the encoder enforces the byte limit,
# this caps the character count.
_PASSWORD_MAX = 72

# Profile text is trimmed. Passwords never are: the hash must cover exactly what
# the user typed, or login would compare against a different string.
_Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]
_Phone = Annotated[str, StringConstraints(strip_whitespace=True, max_length=32)]


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class SignupRequest(BaseModel):
    """Request body for POST /api/v1/users/signup."""

    name: _Name
    email: EmailStr
    phone: Optional[_Phone] = None
    password: str = Field(min_length=6, max_length=_PASSWORD_MAX)

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, v):
        return v.strip() if isinstance(v, str) else v


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/users/login."""

    email: EmailStr
    password: str = Field(min_length=1, max_length=_PASSWORD_MAX)

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, v):
        return v.strip() if isinstance(v, str) else v


class UserUpdate(BaseModel):
    """Request body for PUT /api/v1/users/{user_id}. Omitted fields are left unchanged."""

    name: Optional[_Name] = None
    phone: Optional[_Phone] = None
    password: Optional[str] = Field(default=None, min_length=6, max_length=_PASSWORD_MAX)


class UserResponse(BaseModel):
    """Public view of a user. Never carries the password hash."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    email: str
    phone: Optional[str] = None
    role: str
    created_at: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            phone=user.phone,
            role=user.role,
            created_at=user.created_at,
        )


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class _CamelModel(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class FlightResponse(_CamelModel):
    id: str
    flight_name: str
    origin: str = Field(alias="from")
    destination: str = Field(alias="to")
    departure_time: str
    arrival_time: str
    price: float
    available_seats: int
    rating: float
    stops: int
    amenities: list[str]

    @classmethod
    def from_flight(cls, flight: Flight) -> "FlightResponse":
        return cls(
            id=flight.id,
            flight_name=flight.flight_name,
            origin=flight.origin,
            destination=flight.destination,
            departure_time=flight.departure_time,
            arrival_time=flight.arrival_time,
            price=flight.price,
            available_seats=flight.available_seats,
            rating=flight.rating,
            stops=flight.stops,
            amenities=list(flight.amenities),
        )


class HotelResponse(_CamelModel):
    id: str
    hotel_name: str
    location: str
    price_per_night: float
    available_rooms: int
    rating: float
    amenities: list[str]

    @classmethod
    def from_hotel(cls, hotel: Hotel) -> "HotelResponse":
        return cls(
            id=hotel.id,
            hotel_name=hotel.hotel_name,
            location=hotel.location,
            price_per_night=hotel.price_per_night,
            available_rooms=hotel.available_rooms,
            rating=hotel.rating,
            amenities=list(hotel.amenities),
        )


# ---------------------------------------------------------------------------
# Seats and rooms
# ---------------------------------------------------------------------------


class SeatResponse(_CamelModel):
    id: str
    row: int
    number: int
    status: str
    price: float
    type: str

    @classmethod
    def from_seat(cls, seat: Seat) -> "SeatResponse":
        return cls(id=seat.id, row=seat.row, number=seat.number, status=seat.status, price=seat.price, type=seat.type)


class RoomResponse(_CamelModel):
    id: str
    type: str
    photos: list[str]
    price_per_night: float
    status: str
    description: str
    preview_3d: Optional[str] = Field(default=None, alias="preview3D")

    @classmethod
    def from_room(cls, room: Room) -> "RoomResponse":
        return cls(
            id=room.id,
            type=room.type,
            photos=list(room.photos),
            price_per_night=room.price_per_night,
            status=room.status,
            description=room.description,
            preview_3d=room.preview_3d,
        )


class SeatBookingRequest(_CamelModel):
    """Body of POST /api/v1/seats. userId, when given, earns loyalty points."""

    seat_ids: list[str] = Field(min_length=1)
    user_id: Optional[str] = None


class RoomBookingRequest(_CamelModel):
    room_ids: list[str] = Field(min_length=1)
    user_id: Optional[str] = None


class SeatBookingResponse(_CamelModel):
    message: str
    seats: list[SeatResponse]
    points_earned: int = 0


class RoomBookingResponse(_CamelModel):
    message: str
    rooms: list[RoomResponse]
    points_earned: int = 0


# ---------------------------------------------------------------------------
# Dynamic pricing
# ---------------------------------------------------------------------------


class PricePointResponse(_CamelModel):
    timestamp: int
    price: float


class PriceQuoteResponse(_CamelModel):
    id: str
    current_price: float
    price_history: list[PricePointResponse]
    price_freeze_until: Optional[int] = None

    @classmethod
    def from_quote(cls, quote: PriceQuote) -> "PriceQuoteResponse":
        return cls(
            id=quote.id,
            current_price=quote.current_price,
            price_history=[_price_point(p) for p in quote.price_history],
            price_freeze_until=quote.price_freeze_until,
        )


def _price_point(point: PricePoint) -> PricePointResponse:
    return PricePointResponse(timestamp=point.timestamp, price=point.price)


class PriceFreezeResponse(_CamelModel):
    message: str = "Price frozen for 24 hours"
    price_freeze_until: int


# ---------------------------------------------------------------------------
# Loyalty
# ---------------------------------------------------------------------------


class LoyaltyPointResponse(_CamelModel):
    points: int
    earned_date: datetime
    expiry_date: datetime
    booking_id: str
    redeemed: bool

    @classmethod
    def from_entry(cls, entry: LoyaltyPoint) -> "LoyaltyPointResponse":
        return cls(
            points=entry.points,
            earned_date=entry.earned_date,
            expiry_date=entry.expiry_date,
            booking_id=entry.booking_id,
            redeemed=entry.redeemed,
        )


class LoyaltyResponse(_CamelModel):
    user_id: str
    points_balance: int
    points_history: list[LoyaltyPointResponse]
    current_tier: str
    tier_progress: float
    points_expiry_reminder: str
    benefits: list[str]

    @classmethod
    def from_account(cls, account: LoyaltyAccount) -> "LoyaltyResponse":
        return cls(
            user_id=account.user_id,
            points_balance=account.points_balance,
            points_history=[LoyaltyPointResponse.from_entry(e) for e in account.points_history],
            current_tier=account.current_tier,
            tier_progress=account.tier_progress,
            points_expiry_reminder=account.points_expiry_reminder,
            benefits=list(account.benefits),
        )


class RedeemRequest(_CamelModel):
    points_to_redeem: int = Field(gt=0)


# ---------------------------------------------------------------------------
# Bundles
# ---------------------------------------------------------------------------


class TourGuideResponse(_CamelModel):
    id: str
    name: str
    languages: list[str] = Field(alias="language")
    price_per_day: float
    rating: float
    available_dates: list[str]
    description: str

    @classmethod
    def from_guide(cls, guide: TourGuide) -> "TourGuideResponse":
        return cls(
            id=guide.id,
            name=guide.name,
            languages=list(guide.languages),
            price_per_day=guide.price_per_day,
            rating=guide.rating,
            available_dates=list(guide.available_dates),
            description=guide.description,
        )


class DiscountDetailsResponse(_CamelModel):
    bundle_discount_percent: float
    group_discount_percent: float
    total_discount_amount: float
    final_price: float

    @classmethod
    def from_details(cls, details: DiscountDetails) -> "DiscountDetailsResponse":
        return cls(
            bundle_discount_percent=details.bundle_discount_percent,
            group_discount_percent=details.group_discount_percent,
            total_discount_amount=details.total_discount_amount,
            final_price=details.final_price,
        )


class BundleResponse(_CamelModel):
    id: str
    name: str
    description: str
    flights: list[FlightResponse]
    hotels: list[HotelResponse]
    tour_guides: list[TourGuideResponse]
    base_price: float
    discount_percent: float
    discount_details: DiscountDetailsResponse

    @classmethod
    def from_bundle(cls, bundle: Bundle, details: DiscountDetails) -> "BundleResponse":
        return cls(
            id=bundle.id,
            name=bundle.name,
            description=bundle.description,
            flights=[FlightResponse.from_flight(f) for f in bundle.flights],
            hotels=[HotelResponse.from_hotel(h) for h in bundle.hotels],
            tour_guides=[TourGuideResponse.from_guide(g) for g in bundle.tour_guides],
            base_price=bundle.base_price,
            discount_percent=bundle.discount_percent,
            discount_details=DiscountDetailsResponse.from_details(details),
        )


class BundleQuoteRequest(_CamelModel):
    flight_id: str = Field(min_length=1)
    hotel_id: str = Field(min_length=1)
    tour_guide_id: str = Field(min_length=1)
    travelers: int = Field(ge=1)


class BundleQuoteResponse(_CamelModel):
    selected_flight: FlightResponse
    selected_hotel: HotelResponse
    selected_tour_guide: TourGuideResponse
    travelers: int
    discount_details: DiscountDetailsResponse

    @classmethod
    def from_quote(cls, quote: BundleQuote) -> "BundleQuoteResponse":
        return cls(
            selected_flight=FlightResponse.from_flight(quote.flight),
            selected_hotel=HotelResponse.from_hotel(quote.hotel),
            selected_tour_guide=TourGuideResponse.from_guide(quote.tour_guide),
            travelers=quote.travelers,
            discount_details=DiscountDetailsResponse.from_details(quote.discount_details),
        )


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------

EntityType = Literal["flight", "hotel"]


class AdminReplyResponse(_CamelModel):
    id: str
    review_id: str
    text: str
    created_at: str
    parent_reply_id: Optional[str] = None
    replies: list["AdminReplyResponse"] = Field(default_factory=list)

    @classmethod
    def from_reply(cls, reply: AdminReply) -> "AdminReplyResponse":
        return cls(
            id=reply.id,
            review_id=reply.review_id,
            text=reply.text,
            created_at=reply.created_at,
            parent_reply_id=reply.parent_reply_id,
            replies=[cls.from_reply(r) for r in reply.replies],
        )


class ReviewResponse(_CamelModel):
    id: str
    user_id: str
    user_name: str
    entity_id: str
    entity_type: str
    rating: int
    text: str
    flagged: bool
    created_at: str
    updated_at: Optional[str] = None
    helpful_count: int
    admin_replies: list[AdminReplyResponse]

    @classmethod
    def from_review(cls, review: Review) -> "ReviewResponse":
        return cls(
            id=review.id,
            user_id=review.user_id,
            user_name=review.user_name,
            entity_id=review.entity_id,
            entity_type=review.entity_type,
            rating=review.rating,
            text=review.text,
            flagged=review.flagged,
            created_at=review.created_at,
            updated_at=review.updated_at,
            helpful_count=review.helpful_count,
            admin_replies=[AdminReplyResponse.from_reply(r) for r in review.admin_replies],
        )


class ReviewCreateRequest(_CamelModel):
    user_id: str = Field(min_length=1)
    user_name: str = Field(min_length=1, max_length=255)
    entity_id: str = Field(min_length=1)
    entity_type: EntityType
    rating: int = Field(ge=1, le=5)
    text: str = Field(min_length=1, max_length=5000)


class ReviewUpdateRequest(_CamelModel):
    user_id: str = Field(min_length=1)
    rating: int = Field(ge=1, le=5)
    text: str = Field(min_length=1, max_length=5000)


class ReplyRequest(_CamelModel):
    text: str = Field(min_length=1, max_length=5000)
    parent_reply_id: Optional[str] = None
