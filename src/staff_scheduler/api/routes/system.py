from typing import Annotated

from fastapi import APIRouter, Depends

from staff_scheduler.core.config import Settings, get_settings
from staff_scheduler.services.rules import SchedulingRules, load_default_rules

router = APIRouter()


@router.get("/settings")
async def read_settings(
    settings: Annotated[Settings, Depends(get_settings)]
) -> dict[str, str]:
    """Expose basic runtime metadata for diagnostics."""
    return {
        "environment": settings.environment,
        "project": settings.project_name,
        "version": settings.version,
    }


@router.get("/rules/default", response_model=SchedulingRules)
async def read_default_rules() -> SchedulingRules:
    return load_default_rules().rules
