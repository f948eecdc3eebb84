"""
Wire format for chat traffic.

Inbound payloads are JSON objects parsed into :class:`ChatMessage`; outbound
payloads are plain dicts built by the helpers below so every notice carries
the same set of fields.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from ..infrastructure.exceptions import MessageParseError
from .types import (
    FIELD_CHATROOM,
    FIELD_CLEAR_ALL_MESSAGES,
    FIELD_CLIENT_ID,
    FIELD_KILL,
    FIELD_KILL_ROOM,
    FIELD_MESSAGE,
    FIELD_USER,
    SERVER_USER,
)


@dataclass(frozen=True)
class ChatMessage:
    """A parsed inbound chat payload."""

    user: str = ""
    message: str = ""
    chatroom: str = ""
    kill: bool = False
    kill_room: bool = False
    # Whatever the client claimed; never used for attribution.
    claimed_client_id: Optional[str] = None

    @classmethod
    def from_raw(cls, raw: Union[str, bytes]) -> "ChatMessage":
        """
        Parse a raw websocket frame.

        Raises:
            MessageParseError: If the frame is not a JSON object or a field
                has the wrong type.
        """
        if isinstance(raw, (bytes, bytearray)):
            try:
                raw = bytes(raw).decode("utf-8")
            except UnicodeDecodeError as e:
                raise MessageParseError(f"Payload is not valid UTF-8: {e}") from e

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise MessageParseError(f"Invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise MessageParseError(
                f"Expected a JSON object, got {type(data).__name__}"
            )

        claimed = data.get(FIELD_CLIENT_ID)
        return cls(
            user=_optional_string(data, FIELD_USER),
            message=_optional_string(data, FIELD_MESSAGE),
            chatroom=_coerce_chatroom(data.get(FIELD_CHATROOM)),
            kill=data.get(FIELD_KILL) is True,
            kill_room=data.get(FIELD_KILL_ROOM) is True,
            claimed_client_id=None if claimed is None else str(claimed),
        )


def _optional_string(data: Dict[str, Any], field: str) -> str:
    value = data.get(field)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise MessageParseError(
            f"Field '{field}' must be a string, got {type(value).__name__}"
        )
    return value


def _coerce_chatroom(value: Any) -> str:
    """Absent, null and other falsy values mean "no chatroom"."""
    if not value:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise MessageParseError(
        f"Field '{FIELD_CHATROOM}' must be a string, got {type(value).__name__}"
    )


def server_notice(
    message: str,
    chatroom: str,
    client_id: str,
    clear_all_messages: bool = False,
) -> Dict[str, Any]:
    """Build a system notice attributed to the ``server`` user."""
    notice: Dict[str, Any] = {
        FIELD_USER: SERVER_USER,
        FIELD_MESSAGE: message,
        FIELD_CHATROOM: chatroom,
        FIELD_CLIENT_ID: client_id,
    }
    if clear_all_messages:
        notice[FIELD_CLEAR_ALL_MESSAGES] = True
    return notice


def chat_payload(message: ChatMessage, client_id: str) -> Dict[str, Any]:
    """Build the outgoing room message using the server-assigned client id."""
    return {
        FIELD_USER: message.user,
        FIELD_MESSAGE: message.message,
        FIELD_CHATROOM: message.chatroom,
        FIELD_CLIENT_ID: client_id,
    }
