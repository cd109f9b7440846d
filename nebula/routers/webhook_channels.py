"""Webhook channel API endpoints."""

from collections.abc import Callable

import httpx
from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from nebula.core.database import get_db
from nebula.core.deps import get_log_service, get_webhook_client_factory
from nebula.models.webhook_channel import WebhookChannel
from nebula.repositories.settings_repository import SettingsRepository
from nebula.repositories.subscription_repository import SubscriptionRepository
from nebula.repositories.webhook_channel_repository import WebhookChannelRepository
from nebula.schemas.webhook_channel import (
    WebhookChannelCreate,
    WebhookChannelResponse,
    WebhookChannelUpdate,
    WebhookTestRequest,
    WebhookTestResult,
)
from nebula.services.log_service import LogService
from nebula.services.time_source import TimeSource
from nebula.services.webhook_dispatcher import WebhookDispatcher
from nebula.services.webhook_templates import TemplateError, build_test_context, validate_template

router = APIRouter()


def _validate_channel_template(template: str | None, db: Session) -> None:
    """Reject templates that do not render to JSON against the test context."""
    if not template:
        return
    app_settings = SettingsRepository(db).get()
    ctx = build_test_context(str(app_settings.timezone), str(app_settings.base_currency))
    try:
        validate_template(template, ctx)
    except TemplateError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.post(
    "/",
    response_model=WebhookChannelResponse,
    status_code=201,
    summary="Create webhook channel",
    responses={
        400: {"description": "Template does not render to valid JSON"},
        422: {"description": "Validation error"},
    },
)
async def create_webhook_channel(
    data: WebhookChannelCreate,
    db: Session = Depends(get_db),
    log: LogService = Depends(get_log_service),
) -> WebhookChannel:
    """Create a new webhook channel."""
    _validate_channel_template(data.template, db)
    channel = WebhookChannelRepository(db).create(data)
    log.info("webhook.create", "webhook created", {"id": channel.id, "name": channel.name})
    return channel


@router.get(
    "/",
    response_model=list[WebhookChannelResponse],
    summary="List webhook channels",
)
async def list_webhook_channels(
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    db: Session = Depends(get_db),
) -> list[WebhookChannel]:
    """List all webhook channels."""
    repo = WebhookChannelRepository(db)
    response.headers["X-Total-Count"] = str(repo.count())
    return repo.get_all(skip=skip, limit=limit)


@router.get(
    "/{channel_id}",
    response_model=WebhookChannelResponse,
    summary="Get webhook channel",
    responses={404: {"description": "Webhook channel not found"}},
)
async def get_webhook_channel(
    channel_id: int,
    db: Session = Depends(get_db),
) -> WebhookChannel:
    channel = WebhookChannelRepository(db).get_by_id(channel_id)
    if not channel:
        raise HTTPException(status_code=404, detail="Webhook channel not found")
    return channel


@router.put(
    "/{channel_id}",
    response_model=WebhookChannelResponse,
    summary="Update webhook channel",
    responses={
        400: {"description": "Template does not render to valid JSON"},
        404: {"description": "Webhook channel not found"},
        422: {"description": "Validation error"},
    },
)
async def update_webhook_channel(
    channel_id: int,
    data: WebhookChannelUpdate,
    db: Session = Depends(get_db),
    log: LogService = Depends(get_log_service),
) -> WebhookChannel:
    """Update a webhook channel."""
    _validate_channel_template(data.template, db)
    channel = WebhookChannelRepository(db).update(channel_id, data)
    if not channel:
        raise HTTPException(status_code=404, detail="Webhook channel not found")
    log.info("webhook.update", "webhook updated", {"id": channel.id, "name": channel.name})
    return channel


@router.delete(
    "/{channel_id}",
    status_code=204,
    summary="Delete webhook channel",
    responses={404: {"description": "Webhook channel not found"}},
)
async def delete_webhook_channel(
    channel_id: int,
    db: Session = Depends(get_db),
    log: LogService = Depends(get_log_service),
) -> None:
    """Delete a webhook channel. Subscriptions still referencing it skip it at send time."""
    if not WebhookChannelRepository(db).delete(channel_id):
        raise HTTPException(status_code=404, detail="Webhook channel not found")
    log.info("webhook.delete", "webhook deleted", {"id": channel_id})


@router.post(
    "/{channel_id}/test",
    response_model=WebhookTestResult,
    summary="Send a test notification",
    responses={404: {"description": "Webhook channel not found"}},
)
async def test_webhook_channel(
    channel_id: int,
    data: WebhookTestRequest | None = Body(default=None),
    db: Session = Depends(get_db),
    log: LogService = Depends(get_log_service),
    client_factory: Callable[[], httpx.AsyncClient] = Depends(get_webhook_client_factory),
) -> WebhookTestResult:
    """Send the channel's payload once, using a real subscription when one is given.

    Delivery problems are reported in the result rather than as HTTP errors.
    """
    channel = WebhookChannelRepository(db).get_by_id(channel_id)
    if not channel:
        raise HTTPException(status_code=404, detail="Webhook channel not found")

    time_source = TimeSource()
    dispatcher = WebhookDispatcher(db, log, time_source=time_source, client_factory=client_factory)
    app_settings = SettingsRepository(db).get()

    subscription = None
    if data is not None and data.subscription_id is not None:
        subscription = SubscriptionRepository(db).get_by_id(data.subscription_id)
    if subscription is not None:
        today = time_source.today(str(app_settings.timezone))
        ctx = dispatcher.build_context(subscription, today, app_settings)
    else:
        ctx = build_test_context(
            str(app_settings.timezone), str(app_settings.base_currency), time_source
        )

    result = await dispatcher.send(channel, ctx)
    return WebhookTestResult(
        ok=result.ok,
        status=result.status,
        response=result.response,
        elapsed_ms=result.elapsed_ms,
    )
