MESSAGES = {
    "en": {
        "error": {
            "room_full": "Room {room} is full, try again later",
            "not_in_room": "Join a room first",
            "invalid_payload": "Malformed {event} payload: {reason}",
            "invalid_room_id": "Room id must be a non-empty string up to {limit} characters",
            "screen_share_active": "{name} is already sharing the screen",
            "message_not_sent": "Message was not sent, please retry",
            "history_unavailable": "Chat history is unavailable right now",
            "unknown_event": "Unknown event {event}",
            "internal_error": "Internal server error"
        }
    },
    "ru": {
        "error": {
            "room_full": "Комната {room} заполнена, попробуйте позже",
            "not_in_room": "Сначала войдите в комнату",
            "invalid_payload": "Некорректные данные {event}: {reason}",
            "invalid_room_id": "Идентификатор комнаты должен быть непустой строкой до {limit} символов",
            "screen_share_active": "{name} уже показывает экран",
            "message_not_sent": "Сообщение не отправлено, повторите попытку",
            "history_unavailable": "История чата сейчас недоступна",
            "unknown_event": "Неизвестное событие {event}",
            "internal_error": "Внутренняя ошибка сервера"
        }
    }
}

def tr(key, lang="en", **kwargs):
    ## key is string like "error.room_full"
    d = MESSAGES.get(lang, MESSAGES["en"])
    for part in key.split("."):
        d = d.get(part, {})
    if not isinstance(d, str):
        return "???"
    try:
        return d.format(**kwargs)
    except (KeyError, IndexError):
        return d
