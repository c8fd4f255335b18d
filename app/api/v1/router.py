from fastapi import APIRouter

from app.api.v1.payments import router as payments_router

# Create the main API router
api_router = APIRouter()

# Include all the routers from different modules
api_router.include_router(payments_router)
