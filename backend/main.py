"""
FastAPI application for the train fare estimator.

Provides REST API endpoints for the frontend to:
- Estimate the price of a trip for a group of passengers
- Display the pricing rules (age tiers, booking windows, discount cards)
"""
import logging

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from models import (
    DiscountCard,
    EstimateRequest,
    EstimateResponse,
    InvalidTripInputError,
    PriceApiError,
)
from fare_estimator import TrainTicketEstimator, get_estimator
from config import get_settings

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Train Fare Estimator API",
    description="Estimates train ticket prices for groups of passengers",
    version="1.0.0",
)

# Configure CORS for frontend access
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        settings.frontend_url,
        "http://localhost:5173",  # Vite dev server
        "http://localhost:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_service() -> TrainTicketEstimator:
    """Get the fare estimator."""
    return get_estimator()


# API Endpoints

@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "healthy", "service": "Train Fare Estimator API"}


@app.post("/api/estimate", response_model=EstimateResponse)
async def estimate_trip(request: EstimateRequest):
    """
    Estimate the price of a trip.

    Returns the total with each passenger's fare after discount cards.
    A request with no passengers costs nothing and is not validated.
    """
    service = get_service()

    try:
        breakdown = await service.estimate_breakdown(request.to_trip_request())
    except InvalidTripInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PriceApiError as e:
        logger.error(f"Price unavailable for {request.origin} -> {request.destination}")
        raise HTTPException(status_code=502, detail=str(e))

    return EstimateResponse.from_breakdown(breakdown)


@app.get("/api/pricing/rules")
async def get_pricing_rules():
    """
    Get the pricing rules for display on the frontend.
    """
    rules = TrainTicketEstimator

    return {
        "age_tiers": {
            "infant": {"label": "Under 1", "max_age": 0, "flat_fare": rules.INFANT_FARE},
            "toddler": {"label": "1 to 3", "min_age": 1, "max_age": 3, "flat_fare": rules.TODDLER_FARE},
            "minor": {"label": "4 to 17", "min_age": 4, "max_age": 17, "multiplier": rules.AGE_MULTIPLIERS["minor"]},
            "adult": {"label": "18 to 69", "min_age": 18, "max_age": 69, "multiplier": rules.AGE_MULTIPLIERS["adult"]},
            "senior": {"label": "70 and over", "min_age": 70, "multiplier": rules.AGE_MULTIPLIERS["senior"]},
        },
        "booking_windows": {
            "early": {
                "label": f"{rules.EARLY_BOOKING_DAYS}+ days in advance",
                "min_days": rules.EARLY_BOOKING_DAYS,
                "adjustment": rules.EARLY_BOOKING_ADJUSTMENT,
            },
            "ramp": {
                "label": f"{rules.LATE_BOOKING_DAYS + 1}-{rules.EARLY_BOOKING_DAYS - 1} days in advance",
                "min_days": rules.LATE_BOOKING_DAYS + 1,
                "max_days": rules.EARLY_BOOKING_DAYS - 1,
                "pivot_days": rules.RAMP_PIVOT_DAYS,
                "rate_per_day": rules.RAMP_RATE_PER_DAY,
            },
            "short_notice": {
                "label": f"Up to {rules.LATE_BOOKING_DAYS} days in advance",
                "max_days": rules.LATE_BOOKING_DAYS,
                "adjustment": rules.SHORT_NOTICE_ADJUSTMENT,
            },
            "last_minute": {
                "label": f"Within {rules.LAST_MINUTE_HOURS} hours of departure",
                "max_hours": rules.LAST_MINUTE_HOURS,
                "adjustment": rules.LAST_MINUTE_ADJUSTMENT,
            },
        },
        "discount_cards": {
            **{card.value: {"reduction": amount} for card, amount in rules.CARD_REDUCTIONS.items()},
            DiscountCard.DISABILITY_STROKE.value: {"flat_fare": rules.DISABILITY_STROKE_FARE},
        },
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
