"""Application settings API endpoints."""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlalchemy.orm import Session

from nebula.core.database import get_db
from nebula.core.deps import get_log_service
from nebula.models.app_settings import AppSettings
from nebula.repositories.settings_repository import SettingsRepository
from nebula.schemas.app_settings import AppSettingsResponse, AppSettingsUpdate, RatesRefreshResponse
from nebula.services.log_service import LogService
from nebula.services.rates import RatesService, RatesUnavailableError
from nebula.tasks import enqueue_refresh_exchange_rates

logger = logging.getLogger(__name__)

router = APIRouter()

# Changing any of these invalidates stored rates
RATE_FIELDS = {"exchange_enabled", "exchange_api_key", "base_currency"}


async def _enqueue_rates_refresh() -> None:
    try:
        await enqueue_refresh_exchange_rates()
    except Exception:
        logger.exception("Failed to enqueue exchange rate refresh")


@router.get("/", response_model=AppSettingsResponse, summary="Get settings")
async def get_settings(db: Session = Depends(get_db)) -> AppSettings:
    return SettingsRepository(db).get()


@router.put(
    "/",
    response_model=AppSettingsResponse,
    summary="Update settings",
    responses={422: {"description": "Validation error"}},
)
async def update_settings(
    data: AppSettingsUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    log: LogService = Depends(get_log_service),
) -> AppSettings:
    """Update settings; enabling exchange queues a rate refresh on the worker."""
    row = SettingsRepository(db).update(data)
    log.info("settings.update", "settings updated", {"fields": sorted(data.model_fields_set)})
    if row.exchange_enabled and RATE_FIELDS & data.model_fields_set:
        background_tasks.add_task(_enqueue_rates_refresh)
    return row


@router.post(
    "/rates/refresh",
    response_model=RatesRefreshResponse,
    summary="Refresh exchange rates now",
    responses={400: {"description": "Exchange disabled or rate API unavailable"}},
)
async def refresh_rates(
    db: Session = Depends(get_db),
    log: LogService = Depends(get_log_service),
) -> RatesRefreshResponse:
    service = RatesService(db)
    try:
        count = service.update_rates(force=True)
    except RatesUnavailableError as exc:
        log.error("rates.update", "rate refresh failed", {"error": str(exc)})
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    row = SettingsRepository(db).get()
    log.info("rates.update", "rates refreshed", {"count": count})
    return RatesRefreshResponse(updated=True, count=count or 0, at=row.last_rate_update)
