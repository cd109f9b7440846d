from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from nebula.core.database import get_db
from nebula.core.deps import get_log_service
from nebula.models.subscription import Subscription
from nebula.repositories.settings_repository import SettingsRepository
from nebula.repositories.subscription_repository import SubscriptionRepository
from nebula.schemas.subscription import (
    SubscriptionCreate,
    SubscriptionResponse,
    SubscriptionUpdate,
)
from nebula.services.dates import diff_days, is_valid_iso_date
from nebula.services.log_service import LogService
from nebula.services.subscription_service import SubscriptionService
from nebula.services.time_source import TimeSource

router = APIRouter()


def _to_response(subscription: Subscription, today: str | None = None) -> SubscriptionResponse:
    response = SubscriptionResponse.model_validate(subscription)
    if today is not None and is_valid_iso_date(str(subscription.next_due_date)):
        response.days_left = diff_days(today, str(subscription.next_due_date))
    return response


@router.get(
    "/",
    response_model=list[SubscriptionResponse],
    summary="List subscriptions",
)
async def list_subscriptions(
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    db: Session = Depends(get_db),
) -> list[SubscriptionResponse]:
    """List subscriptions ordered by next due date, with days left until each."""
    repo = SubscriptionRepository(db)
    today = TimeSource().today(str(SettingsRepository(db).get().timezone))
    response.headers["X-Total-Count"] = str(repo.count())
    return [_to_response(sub, today) for sub in repo.get_all(skip=skip, limit=limit)]


@router.get(
    "/{subscription_id}",
    response_model=SubscriptionResponse,
    summary="Get subscription",
    responses={404: {"description": "Subscription not found"}},
)
async def get_subscription(
    subscription_id: int,
    db: Session = Depends(get_db),
) -> SubscriptionResponse:
    subscription = SubscriptionRepository(db).get_by_id(subscription_id)
    if not subscription:
        raise HTTPException(status_code=404, detail="Subscription not found")
    return _to_response(subscription)


@router.post(
    "/",
    response_model=SubscriptionResponse,
    status_code=201,
    summary="Create subscription",
    responses={
        400: {"description": "Invalid dates or custom interval"},
        422: {"description": "Validation error"},
    },
)
async def create_subscription(
    data: SubscriptionCreate,
    db: Session = Depends(get_db),
    log: LogService = Depends(get_log_service),
) -> SubscriptionResponse:
    """Create a subscription; next_due_date is derived from the cycle unless given."""
    try:
        subscription = SubscriptionService(db).create(data)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    log.info(
        "subscription.create",
        "subscription created",
        {"id": subscription.id, "name": subscription.name},
    )
    return _to_response(subscription)


@router.put(
    "/{subscription_id}",
    response_model=SubscriptionResponse,
    summary="Update subscription",
    responses={
        400: {"description": "Invalid dates or custom interval"},
        404: {"description": "Subscription not found"},
        422: {"description": "Validation error"},
    },
)
async def update_subscription(
    subscription_id: int,
    data: SubscriptionUpdate,
    db: Session = Depends(get_db),
    log: LogService = Depends(get_log_service),
) -> SubscriptionResponse:
    try:
        subscription = SubscriptionService(db).update(subscription_id, data)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if not subscription:
        raise HTTPException(status_code=404, detail="Subscription not found")

    log.info(
        "subscription.update",
        "subscription updated",
        {"id": subscription.id, "name": subscription.name},
    )
    return _to_response(subscription)


@router.post(
    "/{subscription_id}/renew",
    response_model=SubscriptionResponse,
    summary="Renew subscription",
    responses={
        400: {"description": "Stored cycle or dates are invalid"},
        404: {"description": "Subscription not found"},
    },
)
async def renew_subscription(
    subscription_id: int,
    db: Session = Depends(get_db),
    log: LogService = Depends(get_log_service),
) -> SubscriptionResponse:
    """Advance a subscription by one billing cycle."""
    subscription = SubscriptionRepository(db).get_by_id(subscription_id)
    if not subscription:
        raise HTTPException(status_code=404, detail="Subscription not found")

    previous_next_due_date = subscription.next_due_date
    try:
        subscription = SubscriptionService(db).renew(subscription)
    except ValueError as exc:
        log.error(
            "subscription.renew",
            "failed to compute next due date",
            {"id": subscription_id, "payment_cycle": subscription.payment_cycle, "error": str(exc)},
        )
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    log.info(
        "subscription.renew",
        "subscription renewed",
        {
            "id": subscription.id,
            "name": subscription.name,
            "previous_next_due_date": previous_next_due_date,
            "start_date": subscription.start_date,
            "next_due_date": subscription.next_due_date,
        },
    )
    return _to_response(subscription)


@router.delete(
    "/{subscription_id}",
    status_code=204,
    summary="Delete subscription",
    responses={404: {"description": "Subscription not found"}},
)
async def delete_subscription(
    subscription_id: int,
    db: Session = Depends(get_db),
    log: LogService = Depends(get_log_service),
) -> None:
    if not SubscriptionRepository(db).delete(subscription_id):
        raise HTTPException(status_code=404, detail="Subscription not found")
    log.info("subscription.delete", "subscription deleted", {"id": subscription_id})
