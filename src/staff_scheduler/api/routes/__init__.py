from fastapi import APIRouter

from . import planning, system

api_router = APIRouter()

api_router.include_router(system.router, prefix="/system", tags=["system"])
api_router.include_router(planning.router, prefix="/planning", tags=["planning"])
