"""
Notifications router.
"""
from fastapi import APIRouter, Depends

from lms.api.dependencies import get_current_tenant, get_current_user, get_notification_service
from lms.models.schemas import MarkReadRequest, NotificationList, Tenant, User
from lms.services.notifications import NotificationService

router = APIRouter(prefix="/api/lms/notifications", tags=["notifications"])


@router.get("", response_model=NotificationList, summary="List Notifications")
async def list_notifications(
    tenant: Tenant = Depends(get_current_tenant),
    user: User = Depends(get_current_user),
    notifications: NotificationService = Depends(get_notification_service),
) -> NotificationList:
    return await notifications.list(tenant.id, user)


@router.post("/mark-read", summary="Mark Notifications Read")
async def mark_read(
    body: MarkReadRequest,
    tenant: Tenant = Depends(get_current_tenant),
    user: User = Depends(get_current_user),
    notifications: NotificationService = Depends(get_notification_service),
) -> dict:
    updated = await notifications.mark_read(
        tenant.id, user, body.notification_ids, mark_all=body.mark_all
    )
    return {"success": True, "updated": updated}
