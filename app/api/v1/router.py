"""
API v1 router setup
All routes require a JWT issued by the auth service
"""
from fastapi import APIRouter

from app.api.v1 import availability, businesses, appointments

api_v1_router = APIRouter()

# ============================================================================
# BUSINESS ROUTES (JWT + BUSINESS role)
# ============================================================================
api_v1_router.include_router(availability.router)

# ============================================================================
# AUTHENTICATED ROUTES (any role)
# ============================================================================
api_v1_router.include_router(businesses.router)
api_v1_router.include_router(appointments.router)


# ============================================================================
# ROOT ENDPOINT - API Info
# ============================================================================
@api_v1_router.get("/", tags=["Info"])
async def api_info():
    """
    API information and available endpoints.
    """
    return {
        "version": "1.0",
        "authentication": "JWT Bearer token required on every route below",
        "endpoints": {
            "availability": "/api/v1/availability/me",
            "business_schedule": "/api/v1/businesses/{business_id}/availability",
            "slots": "/api/v1/businesses/{business_id}/slots",
            "appointments": "/api/v1/appointments",
        }
    }
