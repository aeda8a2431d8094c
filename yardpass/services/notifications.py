import logging
from typing import Any, Dict, Optional

import httpx

from yardpass.config import settings

logger = logging.getLogger(__name__)

NOTIFICATION_TYPES = [
    {"code": "pass_created", "title": "Пропуск создан"},
    {"code": "pass_revoked", "title": "Пропуск отозван"},
]


def get_notification_title(event_type: str) -> str:
    for item in NOTIFICATION_TYPES:
        if item["code"] == event_type:
            return item["title"]
    return event_type


def format_notification_message(event_type: str, pass_data: Dict[str, Any]) -> str:
    title = get_notification_title(event_type)
    lines = [f"Событие: {title}"]

    if pass_data.get("car_plate"):
        lines.append(f"Автомобиль: {pass_data.get('car_plate')}")
    else:
        lines.append("Пешеходный пропуск")
    if pass_data.get("guest_name"):
        lines.append(f"Гость: {pass_data.get('guest_name')}")
    if pass_data.get("valid_from") and pass_data.get("valid_to"):
        lines.append(f"Действует: с {pass_data.get('valid_from')} по {pass_data.get('valid_to')}")

    return "\n".join(lines)


def send_telegram(bot_token: str, chat_id: str, message: str) -> None:
    url = f"https://api.telegram.org/bot{bot_token}/sendMessage"
    payload = {
        "chat_id": chat_id,
        "text": message,
        "disable_web_page_preview": True,
    }
    try:
        response = httpx.post(url, json=payload, timeout=10)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        response_text = exc.response.text if exc.response is not None else ""
        logger.error(
            "Ошибка отправки уведомления через telegram: %s",
            response_text,
            exc_info=True,
        )
    except Exception:
        logger.exception("Ошибка отправки уведомления через telegram")


def notify_resident(event_type: str, chat_id: Optional[int], pass_data: Dict[str, Any]) -> None:
    """Уведомление жителя о его пропуске. Выполняется в фоне, ошибки только логируются"""
    if not settings.TELEGRAM_BOT_TOKEN:
        return
    if not chat_id:
        logger.debug(f"У жителя нет chat_id, уведомление {event_type} пропущено")
        return

    message = format_notification_message(event_type, pass_data)
    send_telegram(settings.TELEGRAM_BOT_TOKEN, str(chat_id), message)
