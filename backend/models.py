"""
Data models for the train fare estimator.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from enum import Enum


class DiscountCard(str, Enum):
    """Discount cards a passenger can hold."""
    SENIOR = "Senior"
    DISABILITY_STROKE = "DisabilityStroke"  # Flat fare override
    COUPLE = "Couple"
    HALF_COUPLE = "HalfCouple"
    FAMILY = "Family"


class InvalidTripInputError(ValueError):
    """Raised when a trip request field fails validation."""


class PriceApiError(Exception):
    """Raised when the price source has no quote for a trip."""

    def __init__(self, message: str = "Api error"):
        super().__init__(message)


class TripDetails(BaseModel):
    """Origin, destination and departure time of a trip."""
    model_config = ConfigDict(frozen=True)

    origin: str
    destination: str
    departure: datetime


class Passenger(BaseModel):
    """A travelling passenger."""
    model_config = ConfigDict(frozen=True)

    age: int
    discount_cards: frozenset[DiscountCard] = frozenset()
    last_name: Optional[str] = None  # Only used for the family card

    @field_validator('discount_cards', mode='before')
    @classmethod
    def parse_cards(cls, v):
        if v is None:
            return frozenset()
        return frozenset(v)

    def has_card(self, card: DiscountCard) -> bool:
        return card in self.discount_cards


class TripRequest(BaseModel):
    """A trip and the passengers travelling on it."""
    model_config = ConfigDict(frozen=True)

    details: TripDetails
    passengers: tuple[Passenger, ...] = ()


class FareLine(BaseModel):
    """A passenger paired with the fare computed for them so far."""
    model_config = ConfigDict(frozen=True)

    passenger: Passenger
    fare: float

    def adjusted(self, amount: float) -> "FareLine":
        """Return a copy with amount added to the fare."""
        return self.model_copy(update={"fare": self.fare + amount})

    def with_fare(self, fare: float) -> "FareLine":
        """Return a copy with the fare replaced."""
        return self.model_copy(update={"fare": fare})


class FareBreakdown(BaseModel):
    """Finalized fare lines of an estimate with their total."""
    base_fare: Optional[float] = None
    lines: list[FareLine] = []
    total: float = 0


# =============================================================================
# API request / response models
# =============================================================================

class PassengerRequest(BaseModel):
    """A passenger as submitted to the estimate endpoint."""
    age: int
    discount_cards: list[DiscountCard] = Field(default_factory=list)
    last_name: Optional[str] = None

    def to_passenger(self) -> Passenger:
        return Passenger(
            age=self.age,
            discount_cards=self.discount_cards,
            last_name=self.last_name,
        )


class EstimateRequest(BaseModel):
    """Request to estimate the price of a trip."""
    origin: str
    destination: str
    departure: datetime
    passengers: list[PassengerRequest] = Field(default_factory=list)

    def to_trip_request(self) -> TripRequest:
        return TripRequest(
            details=TripDetails(
                origin=self.origin,
                destination=self.destination,
                departure=self.departure,
            ),
            passengers=tuple(p.to_passenger() for p in self.passengers),
        )


class PassengerFare(BaseModel):
    """Fare charged to one passenger."""
    age: int
    discount_cards: list[DiscountCard]
    last_name: Optional[str] = None
    fare: float


class EstimateResponse(BaseModel):
    """Response containing the estimated trip price."""
    total: float
    base_fare: Optional[float] = None
    fares: list[PassengerFare] = []

    @classmethod
    def from_breakdown(cls, breakdown: FareBreakdown) -> "EstimateResponse":
        return cls(
            total=breakdown.total,
            base_fare=breakdown.base_fare,
            fares=[
                PassengerFare(
                    age=line.passenger.age,
                    discount_cards=sorted(line.passenger.discount_cards, key=lambda c: c.value),
                    last_name=line.passenger.last_name,
                    fare=line.fare,
                )
                for line in breakdown.lines
            ],
        )
