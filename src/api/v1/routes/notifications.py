"""Notification API routes."""

from fastapi import APIRouter, Depends, Query, Request, status

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import get_notification_service
from api.v1.schemas.notification import (
    ChannelPreferenceResponse,
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationPreferencesResponse,
    NotificationPreferenceUpdateRequest,
    NotificationResponse,
    UnreadCountResponse,
)
from core.rate_limit import limiter
from domain.entities.notification import NotificationChannel, NotificationRecord
from domain.services.notification_service import NotificationService, parse_category

# Org-scoped notification feed routes
notifications_router = APIRouter(
    prefix="/orgs/{org_id}/notifications",
    tags=["notifications"],
)

# Org-scoped preference routes
preferences_router = APIRouter(
    prefix="/orgs/{org_id}/notification-preferences",
    tags=["notification-preferences"],
)


def _to_response(record: NotificationRecord) -> NotificationResponse:
    return NotificationResponse(
        id=record.id,
        category=record.category.value,
        title=record.title,
        body_preview=record.body_preview,
        deep_link=record.deep_link,
        status=record.status.value,
        read_at=record.read_at,
        created_at=record.created_at,
    )


@notifications_router.get(
    "",
    response_model=NotificationListResponse,
    summary="List notifications",
    responses={
        200: {"description": "Caller's notifications, newest first"},
        400: {"description": "Unknown category"},
        403: {"description": "Not an org member"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_notifications(
    request: Request,
    org_id: str,
    user: CurrentUser,
    channel: NotificationChannel = Query(NotificationChannel.IN_APP, description="Channel"),
    category: str | None = Query(None, description="Filter by category"),
    read_status: str = Query("all", pattern="^(all|read|unread)$"),
    limit: int = Query(50, ge=1, le=100, description="Page size"),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationListResponse:
    """List the caller's notifications in an organization."""
    records = await service.list_notifications(
        org_id,
        user.id,
        channel=channel,
        category=parse_category(category) if category else None,
        read_status=read_status,
        limit=limit,
    )
    return NotificationListResponse(data=[_to_response(r) for r in records])


@notifications_router.get(
    "/unread-count",
    response_model=UnreadCountResponse,
    summary="Get unread notification count",
    responses={
        200: {"description": "Unread in-app count"},
    },
)
@limiter.limit("60/minute")  # type: ignore[untyped-decorator]
async def get_unread_count(
    request: Request,
    org_id: str,
    user: CurrentUser,
    service: NotificationService = Depends(get_notification_service),
) -> UnreadCountResponse:
    """Get unread in-app notification count."""
    count = await service.get_unread_count(org_id, user.id)
    return UnreadCountResponse(count=count)


@notifications_router.post(
    "/mark-all-read",
    response_model=MarkAllReadResponse,
    summary="Mark all notifications as read",
    responses={
        200: {"description": "Count of notifications marked as read"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def mark_all_notifications_read(
    request: Request,
    org_id: str,
    user: CurrentUser,
    service: NotificationService = Depends(get_notification_service),
) -> MarkAllReadResponse:
    """Mark all unread in-app notifications as read."""
    count = await service.mark_all_read(org_id, user.id)
    return MarkAllReadResponse(count=count)


@notifications_router.patch(
    "/{notification_id}/read",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Mark notification as read",
    responses={
        204: {"description": "Notification marked as read"},
        403: {"description": "Notification belongs to someone else"},
        404: {"description": "Notification not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def mark_notification_read(
    request: Request,
    org_id: str,
    notification_id: str,
    user: CurrentUser,
    service: NotificationService = Depends(get_notification_service),
) -> None:
    """Mark a notification as read. Requires recipient ownership."""
    await service.mark_read(org_id, user.id, notification_id)


@preferences_router.get(
    "",
    response_model=NotificationPreferencesResponse,
    summary="Get notification preferences",
    responses={
        200: {"description": "Effective preferences for every category"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_notification_preferences(
    request: Request,
    org_id: str,
    user: CurrentUser,
    service: NotificationService = Depends(get_notification_service),
) -> NotificationPreferencesResponse:
    """Get effective preferences; categories never set report both channels on."""
    prefs = await service.get_preferences(org_id, user.id)
    return NotificationPreferencesResponse(
        data={
            category.value: ChannelPreferenceResponse(in_app=p.in_app, email=p.email)
            for category, p in prefs.items()
        }
    )


@preferences_router.put(
    "/{category}",
    response_model=ChannelPreferenceResponse,
    summary="Update notification preference",
    responses={
        200: {"description": "Preference created or updated"},
        400: {"description": "Unknown category"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def update_notification_preference(
    request: Request,
    org_id: str,
    category: str,
    body: NotificationPreferenceUpdateRequest,
    user: CurrentUser,
    service: NotificationService = Depends(get_notification_service),
) -> ChannelPreferenceResponse:
    """Update channel toggles for one category."""
    pref = await service.update_preference(
        org_id,
        user.id,
        category,
        in_app=body.in_app,
        email=body.email,
    )
    return ChannelPreferenceResponse(in_app=pref.in_app, email=pref.email)
