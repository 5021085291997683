from fastapi import APIRouter
from call_intake.api.endpoints import callers, handler

api_router = APIRouter()
api_router.include_router(handler.router, tags=["webhooks"])
api_router.include_router(callers.router, prefix="/callers", tags=["callers"])
