from fastapi import APIRouter

from tourops.api.v1.endpoints import (
    activity_types, activities, schedules, bookings, companies, guides,
    transports, config
)


# Create main API router
api_v1_router = APIRouter()

# Activity catalog
api_v1_router.include_router(
    activity_types.router,
    prefix="/activity-types",
    tags=["activity-types"]
)

# Activities and their schedule generation
api_v1_router.include_router(
    activities.router,
    prefix="/activities",
    tags=["activities"]
)

# Schedule registry, availability and guide assignments
api_v1_router.include_router(
    schedules.router,
    prefix="/schedules",
    tags=["schedules"]
)

# Booking ledger
api_v1_router.include_router(
    bookings.router,
    prefix="/bookings",
    tags=["bookings"]
)

# Partner companies
api_v1_router.include_router(
    companies.router,
    prefix="/companies",
    tags=["companies"]
)

# Guides and languages
api_v1_router.include_router(
    guides.router,
    prefix="/guides",
    tags=["guides"]
)
api_v1_router.include_router(
    guides.languages_router,
    prefix="/languages",
    tags=["guides"]
)

# Fleet
api_v1_router.include_router(
    transports.router,
    prefix="/transports",
    tags=["transports"]
)

# System configuration
api_v1_router.include_router(
    config.router,
    prefix="/config",
    tags=["config"]
)
