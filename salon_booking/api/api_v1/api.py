from fastapi import APIRouter
from salon_booking.api.api_v1.endpoints import specialists, slots, appointments

router = APIRouter()

# Include all routers
router.include_router(specialists.router, prefix="/specialists", tags=["Specialists"])
router.include_router(slots.router, prefix="/slots", tags=["Slots"])
router.include_router(appointments.router, prefix="/appointments", tags=["Appointments"])
