from fastapi import APIRouter
from workclock.api.v1.endpoints import work_clock

api_router = APIRouter()

# Register routes
api_router.include_router(work_clock.router, prefix="/work-clock", tags=["Work Clock"])
