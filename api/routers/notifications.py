"""In-app notification endpoints."""

from fastapi import APIRouter, Depends, Query

from api.core.context import ServiceContext
from api.core.dependencies import get_service_context
from api.repositories.audit_repos import NotificationRepository
from api.schemas.common import ApiResponse, ok
from api.schemas.finance import NotificationResponse
from api.shared.exceptions import NotFoundError

router = APIRouter(prefix="/api/v1/notifications", tags=["Notifications"])


@router.get("", response_model=ApiResponse[list[NotificationResponse]])
async def list_notifications(
    unread_only: bool = Query(False, alias="unreadOnly"),
    limit: int = Query(50, ge=1, le=200),
    ctx: ServiceContext = Depends(get_service_context),
):
    notifications = await NotificationRepository(ctx.session).list(ctx.organization_id, unread_only, limit)
    return ok([NotificationResponse.model_validate(n) for n in notifications])


@router.post("/{notification_id}/read", response_model=ApiResponse[NotificationResponse])
async def mark_notification_read(notification_id: int, ctx: ServiceContext = Depends(get_service_context)):
    repo = NotificationRepository(ctx.session)
    notification = await repo.get_by_id(notification_id, ctx.organization_id)
    if not notification:
        raise NotFoundError("Notification", notification_id)
    notification = await repo.mark_read(notification)
    return ok(NotificationResponse.model_validate(notification))
