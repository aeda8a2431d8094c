"""
Живая лента проверок для пультов охраны.
Каждое подключение подписано на одно здание; superuser (здание None) видит все.
"""
import asyncio
import json
import logging
from typing import Dict, Optional

import anyio
from fastapi import WebSocket

logger = logging.getLogger(__name__)

PING_INTERVAL_SECONDS = 25.0


class ScanEventManager:
    def __init__(self) -> None:
        self._subscribers: Dict[WebSocket, Optional[int]] = {}
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket, building_id: Optional[int]) -> None:
        await websocket.accept()
        async with self._lock:
            self._subscribers[websocket] = building_id

    async def disconnect(self, websocket: WebSocket) -> None:
        async with self._lock:
            self._subscribers.pop(websocket, None)

    async def broadcast(self, payload: dict, building_id: Optional[int] = None) -> int:
        """Разослать событие подписчикам здания. Возвращает число доставок"""
        message = json.dumps(payload, ensure_ascii=False, default=str)
        async with self._lock:
            targets = [
                ws for ws, scope in self._subscribers.items()
                if scope is None or scope == building_id
            ]

        delivered = 0
        for websocket in targets:
            try:
                await websocket.send_text(message)
                delivered += 1
            except Exception:
                logger.debug("WS send failed, removing subscriber", exc_info=True)
                await self.disconnect(websocket)
        return delivered

    async def send_ping(self, websocket: WebSocket, interval: float = PING_INTERVAL_SECONDS) -> None:
        while True:
            await asyncio.sleep(interval)
            await websocket.send_text(json.dumps({"type": "ping"}))


manager = ScanEventManager()


def broadcast_scan_event(result: dict, guard_user_id: str, building_id: Optional[int]) -> None:
    """Вызывается из синхронных обработчиков (threadpool)"""
    payload = {
        "type": "scan_event",
        "guard_user_id": guard_user_id,
        "building_id": building_id,
        "result": result,
    }
    try:
        anyio.from_thread.run(manager.broadcast, payload, building_id)
    except RuntimeError:
        logger.debug("WS broadcast skipped: no running event loop")
