import asyncio
from uuid import UUID

from fastapi import APIRouter, Depends, Response

from subtracker.config import settings
from subtracker.dependencies import SubscriptionFilterParams, get_subscription_service
from subtracker.exceptions import ConsistencyError, NotFoundError
from subtracker.schemas import (
    ErrorResponse,
    SubscriptionCreate,
    SubscriptionResponse,
    SubscriptionUpdate,
    SummaryRequest,
    SummaryResponse,
)
from subtracker.services.subscription_service import SubscriptionService


router = APIRouter(
    prefix="/api/v1/subscriptions",
    tags=["subscriptions"],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input"},
        504: {"model": ErrorResponse, "description": "Request deadline exceeded"},
    },
)


async def _with_deadline(awaitable):
    """Run a service call under the configured per-request deadline."""
    return await asyncio.wait_for(awaitable, timeout=settings.REQUEST_TIMEOUT_SECONDS)


@router.post("", status_code=201, response_model=SubscriptionResponse)
async def create_subscription(
    data: SubscriptionCreate,
    service: SubscriptionService = Depends(get_subscription_service),
):
    try:
        subscription = await _with_deadline(
            service.new_subscription(
                service_name=data.service_name,
                price=data.price,
                user_id=data.user_id,
                start_date=data.start_date,
                end_date=data.end_date,
            )
        )
    except NotFoundError as exc:
        # The row was written but cannot be read back.
        raise ConsistencyError(exc.subscription_id) from exc
    return SubscriptionResponse.from_domain(subscription)


@router.get("", response_model=list[SubscriptionResponse])
async def list_subscriptions(
    params: SubscriptionFilterParams = Depends(),
    service: SubscriptionService = Depends(get_subscription_service),
):
    subscriptions = await _with_deadline(service.list(params.to_filter()))
    return [SubscriptionResponse.from_domain(s) for s in subscriptions]


@router.post("/summary", response_model=SummaryResponse)
async def summarize_subscriptions(
    data: SummaryRequest,
    service: SubscriptionService = Depends(get_subscription_service),
):
    summary = await _with_deadline(
        service.summarize_tokens(
            data.start_date,
            data.end_date,
            user_id=data.user_id,
            service_name=data.service_name or None,
        )
    )
    return SummaryResponse.from_domain(summary)


@router.get(
    "/{subscription_id}",
    response_model=SubscriptionResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_subscription(
    subscription_id: UUID,
    service: SubscriptionService = Depends(get_subscription_service),
):
    subscription = await _with_deadline(service.get(subscription_id))
    return SubscriptionResponse.from_domain(subscription)


@router.put(
    "/{subscription_id}",
    response_model=SubscriptionResponse,
    responses={404: {"model": ErrorResponse}},
)
async def update_subscription(
    subscription_id: UUID,
    data: SubscriptionUpdate,
    service: SubscriptionService = Depends(get_subscription_service),
):
    subscription = await _with_deadline(service.update(subscription_id, data.to_patch()))
    return SubscriptionResponse.from_domain(subscription)


@router.delete(
    "/{subscription_id}",
    status_code=204,
    responses={404: {"model": ErrorResponse}},
)
async def delete_subscription(
    subscription_id: UUID,
    service: SubscriptionService = Depends(get_subscription_service),
):
    await _with_deadline(service.delete(subscription_id))
    return Response(status_code=204)
