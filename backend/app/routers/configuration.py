import logging

from fastapi import APIRouter, Depends

from backend.app.routers.deps import get_config_store, http_error
from backend.app.scheduling.availability import validate_configuration
from backend.app.scheduling.errors import SchedulingError, ValidationFailed
from backend.app.scheduling.models import RestaurantConfig
from backend.app.scheduling.repositories import ConfigStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/restaurants/{restaurant_id}/config", response_model=RestaurantConfig)
async def get_configuration(
    restaurant_id: str,
    store: ConfigStore = Depends(get_config_store),
) -> RestaurantConfig:
    try:
        return await store.get_config(restaurant_id)
    except SchedulingError as exc:
        raise http_error(exc) from exc


@router.put("/restaurants/{restaurant_id}/config", response_model=RestaurantConfig)
async def save_configuration(
    restaurant_id: str,
    payload: RestaurantConfig,
    store: ConfigStore = Depends(get_config_store),
) -> RestaurantConfig:
    """Replace the operating configuration after validating it."""
    try:
        result = validate_configuration(payload)
        if not result.valid:
            raise ValidationFailed(result.errors)
        saved = await store.save_config(restaurant_id, payload)
    except SchedulingError as exc:
        raise http_error(exc) from exc

    logger.info("Configuration updated for %s", restaurant_id)
    return saved
