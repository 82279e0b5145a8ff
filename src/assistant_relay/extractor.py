from assistant_relay.models import ThreadMessage

EMPTY_REPLY = ""


def latest_assistant_message(messages: list[ThreadMessage]) -> ThreadMessage | None:
    """Most recent assistant message by creation time.

    Ties keep the backend's order, which lists newest first.
    """
    ordered = sorted(messages, key=lambda m: m.created_at, reverse=True)
    for message in ordered:
        if message.role == "assistant":
            return message
    return None


def extract_reply(messages: list[ThreadMessage]) -> str:
    message = latest_assistant_message(messages)
    if message is None or message.text is None:
        return EMPTY_REPLY
    return message.text
