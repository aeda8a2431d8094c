import asyncio
import json
from typing import Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from yardpass.database import SessionLocal
from yardpass.models.user import User, ROLE_SUPERUSER
from yardpass.services.auth import decode_access_token
from yardpass.services.scan_events import manager as scan_event_manager

router = APIRouter()

# 1008 - policy violation
WS_CLOSE_UNAUTHORIZED = 1008


def get_user_from_token(token: Optional[str]) -> Optional[User]:
    """Сотрудник по JWT из query-параметра; None если токен невалиден или пользователь неактивен"""
    payload = decode_access_token(token) if token else None
    if not payload or not payload.get("sub"):
        return None

    db = SessionLocal()
    try:
        user = db.query(User).filter(User.id == payload["sub"]).first()
        if user is None or not user.is_active:
            return None
        db.expunge(user)
        return user
    finally:
        db.close()


@router.websocket("/ws/scan-events")
async def scan_events_websocket(websocket: WebSocket):
    """Поток результатов проверок пропусков для пультов охраны своего здания"""
    user = get_user_from_token(websocket.query_params.get("token"))
    if user is None:
        await websocket.close(code=WS_CLOSE_UNAUTHORIZED)
        return

    building_id = None if user.role == ROLE_SUPERUSER else user.building_id
    if user.role != ROLE_SUPERUSER and building_id is None:
        await websocket.close(code=WS_CLOSE_UNAUTHORIZED)
        return

    await scan_event_manager.connect(websocket, building_id)
    await websocket.send_text(json.dumps({"type": "subscribed", "building_id": building_id}))
    ping_task = asyncio.create_task(scan_event_manager.send_ping(websocket))

    try:
        while True:
            message = await websocket.receive_text()
            try:
                payload = json.loads(message)
            except json.JSONDecodeError:
                continue
            # клиент отвечает на ping, других входящих сообщений нет
            if payload.get("type") != "pong":
                continue
    except WebSocketDisconnect:
        pass
    finally:
        ping_task.cancel()
        await scan_event_manager.disconnect(websocket)
