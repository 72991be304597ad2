import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status

from mavericks.core.auth import CurrentUser, get_current_user, require_admin, verify_id_token
from mavericks.core.dependencies import get_hub, get_store
from mavericks.notifications import service
from mavericks.notifications.manager import NotificationHub
from mavericks.notifications.models import Notification, NotificationCreate
from mavericks.store.document_store import DocumentStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=List[Notification])
async def list_notifications(
    store: DocumentStore = Depends(get_store),
    user: CurrentUser = Depends(get_current_user),
):
    return await service.get_user_notifications(store, user.uid)


@router.get("/unread", response_model=List[Notification])
async def list_unread(
    store: DocumentStore = Depends(get_store),
    user: CurrentUser = Depends(get_current_user),
):
    return await service.get_unread_notifications(store, user.uid)


@router.post("/{notification_id}/read")
async def mark_read(
    notification_id: str,
    store: DocumentStore = Depends(get_store),
    user: CurrentUser = Depends(get_current_user),
):
    await service.mark_as_read(store, notification_id, user.uid)
    return {"success": True}


@router.post("/read-all")
async def mark_all_read(
    store: DocumentStore = Depends(get_store),
    user: CurrentUser = Depends(get_current_user),
):
    updated = await service.mark_all_as_read(store, user.uid)
    return {"success": True, "updated": updated}


@router.post("", response_model=Notification)
async def send_notification(
    payload: NotificationCreate,
    store: DocumentStore = Depends(get_store),
    hub: NotificationHub = Depends(get_hub),
    admin: CurrentUser = Depends(require_admin),
):
    """Admin: send a notification to one user"""
    return await service.create_notification(store, payload.user_id, payload.message, payload.type, hub=hub)


@router.websocket("/live")
async def live_notifications(websocket: WebSocket):
    # Browsers cannot set headers on websockets, so the token may come as a query param
    token = None
    auth_header = websocket.headers.get("authorization")
    if auth_header and auth_header.lower().startswith("bearer "):
        token = auth_header.split(" ", 1)[1]
    else:
        token = websocket.query_params.get("token")

    if not token:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    try:
        user = verify_id_token(token)
    except HTTPException:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    hub: NotificationHub = websocket.app.state.hub
    await hub.connect(user.uid, websocket)
    try:
        while True:
            # Clients only listen; anything received keeps the socket alive
            await websocket.receive_text()
    except WebSocketDisconnect:
        await hub.disconnect(user.uid, websocket)
