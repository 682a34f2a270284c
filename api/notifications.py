from fastapi import APIRouter, Depends

from api.deps import get_current_user, get_services
from schemas.user import PublicUser
from services.container import LoanServices
from services.errors import NotFoundError

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("")
async def list_notifications(
    user: PublicUser = Depends(get_current_user),
    services: LoanServices = Depends(get_services),
):
    items = await services.notifications.get_notifications(user.id)
    return {
        "items": [n.model_dump(by_alias=True, mode="json") for n in items],
        "unreadCount": sum(1 for n in items if not n.read),
    }


@router.post("/read-all")
async def mark_all_read(
    user: PublicUser = Depends(get_current_user),
    services: LoanServices = Depends(get_services),
):
    updated = await services.notifications.mark_all_read(user.id)
    return {"updated": updated}


@router.post("/{notification_id}/read")
async def mark_read(
    notification_id: str,
    user: PublicUser = Depends(get_current_user),
    services: LoanServices = Depends(get_services),
):
    item = await services.notifications.get_notification(notification_id)
    if item.user_id != user.id:
        raise NotFoundError("Notification not found")
    item = await services.notifications.mark_read(notification_id)
    return item.model_dump(by_alias=True, mode="json")
