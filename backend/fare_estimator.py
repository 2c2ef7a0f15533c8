"""
Fare estimator for train trips.

Prices a whole booking from a base fare quoted by a price source:
1. Validate the trip details
2. Fetch the base fare for the route
3. Price each passenger by age tier, then adjust for lead time
4. Apply discount cards, some of which depend on the whole group
5. Sum the passenger fares
"""
import logging
import math
from datetime import datetime, time, timedelta
from typing import Callable, Optional

from models import (
    DiscountCard,
    FareBreakdown,
    FareLine,
    InvalidTripInputError,
    Passenger,
    PriceApiError,
    TripDetails,
    TripRequest,
)
from price_source import PRICE_UNAVAILABLE, PriceSource, get_price_source

logger = logging.getLogger(__name__)

ADULT_AGE = 18
SENIOR_AGE = 70
# Passengers younger than this pay a flat fare and get no further adjustment
FLAT_FARE_AGE = 4


class TrainTicketEstimator:
    """
    Estimates the total price of a train booking.

    The price source is injected so the estimator can run without network
    access. The clock supplies "now" and defaults to local wall-clock time.
    """

    # Age tiers: flat amounts for young children, multipliers of the base fare otherwise
    INFANT_FARE = 0.0       # Under 1
    TODDLER_FARE = 9.0      # 1 to 3
    AGE_MULTIPLIERS = {
        "minor": 0.6,       # 4 to 17
        "senior": 0.8,      # 70 and over
        "adult": 1.2,       # 18 to 69
    }

    # Lead-time adjustments, as fractions of the base fare
    EARLY_BOOKING_DAYS = 30
    LATE_BOOKING_DAYS = 5
    LAST_MINUTE_HOURS = 6
    EARLY_BOOKING_ADJUSTMENT = -0.2
    LAST_MINUTE_ADJUSTMENT = -0.2
    RAMP_PIVOT_DAYS = 20
    RAMP_RATE_PER_DAY = 0.02
    # TODO: confirm with pricing whether a full extra base fare between
    # 6 hours and 5 days out is intended; kept for compatibility
    SHORT_NOTICE_ADJUSTMENT = 1.0

    # Discount card reductions, as fractions of the base fare
    CARD_REDUCTIONS = {
        DiscountCard.SENIOR: 0.2,
        DiscountCard.COUPLE: 0.2,
        DiscountCard.HALF_COUPLE: 0.1,
        DiscountCard.FAMILY: 0.3,
    }
    DISABILITY_STROKE_FARE = 1.0

    def __init__(
        self,
        price_source: Optional[PriceSource] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Initialize the estimator.

        Args:
            price_source: Source of base fares (defaults to the configured one)
            clock: Callable returning the current local time
        """
        self.price_source = price_source or get_price_source()
        self.clock = clock

    # =========================================================================
    # Public API
    # =========================================================================

    async def estimate(self, request: TripRequest) -> float:
        """
        Estimate the total price of a trip request.

        Args:
            request: Trip details and passengers

        Returns:
            Sum of all passenger fares (0 when there are no passengers)

        Raises:
            InvalidTripInputError: If a trip field or passenger age is invalid
            PriceApiError: If the price source has no quote for the trip
        """
        breakdown = await self.estimate_breakdown(request)
        return breakdown.total

    async def estimate_breakdown(self, request: TripRequest) -> FareBreakdown:
        """
        Estimate a trip request and keep the per-passenger fares.

        Same rules and errors as estimate().
        """
        if not request.passengers:
            return FareBreakdown()

        now = self.clock()
        details = request.details
        departure = self._as_local(details.departure)
        self.validate_trip_details(details, now)

        base_fare = await self.price_source.get_price_estimation(
            details.origin, details.destination, details.departure
        )
        if base_fare is PRICE_UNAVAILABLE:
            logger.warning(f"No price available for {details.origin} -> {details.destination}")
            raise PriceApiError()
        logger.debug(f"Base fare for {details.origin} -> {details.destination}: {base_fare}")

        lines = [
            self.price_passenger(passenger, base_fare, departure, now)
            for passenger in request.passengers
        ]
        lines = self.apply_discount_cards(lines, base_fare)

        total = sum(line.fare for line in lines)
        logger.info(
            f"Estimated {details.origin} -> {details.destination} "
            f"for {len(lines)} passenger(s): {total}"
        )
        return FareBreakdown(base_fare=base_fare, lines=lines, total=total)

    # =========================================================================
    # Validation
    # =========================================================================

    @classmethod
    def validate_trip_details(cls, details: TripDetails, now: datetime) -> None:
        """
        Check the trip fields before asking for a price.

        Same-day departures are accepted at any hour.

        Raises:
            InvalidTripInputError: With a message naming the invalid field
        """
        if not details.origin.strip():
            logger.info("Rejected trip: empty start city")
            raise InvalidTripInputError("Start city is invalid")

        if not details.destination.strip():
            logger.info("Rejected trip: empty destination city")
            raise InvalidTripInputError("Destination city is invalid")

        if cls._as_local(details.departure) < cls._start_of_day(now):
            logger.info(f"Rejected trip: departure {details.departure} is in the past")
            raise InvalidTripInputError("Date is invalid")

    # =========================================================================
    # Per-passenger pricing
    # =========================================================================

    def price_passenger(
        self,
        passenger: Passenger,
        base_fare: float,
        departure: datetime,
        now: datetime,
    ) -> FareLine:
        """Price one passenger by age tier, plus lead time for those aged 4 and over."""
        fare = self.compute_age_fare(passenger.age, base_fare)
        if passenger.age >= FLAT_FARE_AGE:
            fare += self.compute_date_adjustment(departure, base_fare, now)
        logger.debug(f"Passenger aged {passenger.age} priced at {fare} before cards")
        return FareLine(passenger=passenger, fare=fare)

    @classmethod
    def compute_age_fare(cls, age: int, base_fare: float) -> float:
        """
        Get the age-tier fare for a passenger.

        Raises:
            InvalidTripInputError: If age is negative
        """
        if age < 0:
            raise InvalidTripInputError("Age is invalid")
        if age < 1:
            return cls.INFANT_FARE
        if age < FLAT_FARE_AGE:
            return cls.TODDLER_FARE
        if age < ADULT_AGE:
            return base_fare * cls.AGE_MULTIPLIERS["minor"]
        if age >= SENIOR_AGE:
            return base_fare * cls.AGE_MULTIPLIERS["senior"]
        return base_fare * cls.AGE_MULTIPLIERS["adult"]

    @classmethod
    def compute_date_adjustment(
        cls,
        departure: datetime,
        base_fare: float,
        now: datetime,
    ) -> float:
        """
        Get the lead-time adjustment added to an age-tier fare.

        Day thresholds count from midnight today; the day count used by the
        linear ramp counts from now, rounded up.
        """
        today = cls._start_of_day(now)
        early_threshold = today + timedelta(days=cls.EARLY_BOOKING_DAYS)
        late_threshold = today + timedelta(days=cls.LATE_BOOKING_DAYS)
        last_minute_threshold = (
            now.replace(minute=0, second=0, microsecond=0)
            + timedelta(hours=cls.LAST_MINUTE_HOURS)
        )

        if departure >= early_threshold:
            return base_fare * cls.EARLY_BOOKING_ADJUSTMENT

        if late_threshold < departure < early_threshold:
            days_before_departure = math.ceil((departure - now) / timedelta(days=1))
            return (
                (cls.RAMP_PIVOT_DAYS - days_before_departure)
                * cls.RAMP_RATE_PER_DAY
                * base_fare
            )

        if departure <= last_minute_threshold:
            return base_fare * cls.LAST_MINUTE_ADJUSTMENT

        return base_fare * cls.SHORT_NOTICE_ADJUSTMENT

    # =========================================================================
    # Discount cards
    # =========================================================================

    @classmethod
    def apply_discount_cards(cls, lines: list[FareLine], base_fare: float) -> list[FareLine]:
        """
        Apply discount cards across the whole group of fare lines.

        A disability/stroke card fixes the fare at 1 and overrides everything
        else. Passengers under 4 keep their flat fare. Other reductions stack
        additively:
        - Half couple: a lone adult passenger holding the card
        - Senior: a passenger aged 70+ holding the card
        - Couple: exactly two adult passengers, either holding the card
        - Family: adults sharing a last name with an adult family card holder
        """
        passengers = [line.passenger for line in lines]
        adults = [p for p in passengers if p.age >= ADULT_AGE]

        is_lone_passenger = len(passengers) == 1
        is_couple = (
            len(passengers) == 2
            and len(adults) == 2
            and any(p.has_card(DiscountCard.COUPLE) for p in adults)
        )
        family_names = {
            p.last_name for p in adults
            if p.has_card(DiscountCard.FAMILY) and p.last_name
        }

        def reduction(card: DiscountCard) -> float:
            return -base_fare * cls.CARD_REDUCTIONS[card]

        result = []
        for line in lines:
            passenger = line.passenger

            if passenger.has_card(DiscountCard.DISABILITY_STROKE):
                result.append(line.with_fare(cls.DISABILITY_STROKE_FARE))
                continue

            if passenger.age < FLAT_FARE_AGE:
                result.append(line)
                continue

            is_adult = passenger.age >= ADULT_AGE

            if is_lone_passenger and is_adult and passenger.has_card(DiscountCard.HALF_COUPLE):
                line = line.adjusted(reduction(DiscountCard.HALF_COUPLE))

            if passenger.age >= SENIOR_AGE and passenger.has_card(DiscountCard.SENIOR):
                line = line.adjusted(reduction(DiscountCard.SENIOR))

            if is_couple:
                line = line.adjusted(reduction(DiscountCard.COUPLE))

            if is_adult and (
                passenger.has_card(DiscountCard.FAMILY)
                or passenger.last_name in family_names
            ):
                line = line.adjusted(reduction(DiscountCard.FAMILY))

            result.append(line)

        return result

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _start_of_day(moment: datetime) -> datetime:
        return datetime.combine(moment.date(), time.min)

    @staticmethod
    def _as_local(moment: datetime) -> datetime:
        """Convert an aware datetime to naive local time; naive ones pass through."""
        if moment.tzinfo is None:
            return moment
        return moment.astimezone().replace(tzinfo=None)


# Singleton instance for the application
_estimator: Optional[TrainTicketEstimator] = None


def get_estimator() -> TrainTicketEstimator:
    """
    Get or create the estimator singleton.

    Returns:
        The TrainTicketEstimator instance, using the configured price source
    """
    global _estimator
    if _estimator is None:
        _estimator = TrainTicketEstimator()
    return _estimator
