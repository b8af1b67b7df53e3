"""Account and server value types.

``UserType`` and ``UserRight`` mirror the integer values the server
uses on the wire for ``usertype`` and ``userrights``.
"""

from __future__ import annotations

from enum import IntEnum, IntFlag
from typing import Any

from pydantic import BaseModel, Field, field_validator


class UserType(IntEnum):
    """Account type as stored by the server."""

    NONE = 0
    DEFAULT = 1
    ADMIN = 2


class UserRight(IntFlag):
    """Per-account rights bitmask."""

    NONE = 0x00000000
    MULTI_LOGIN = 0x00000001
    VIEW_ALL_USERS = 0x00000002
    CREATE_TEMPORARY_CHANNEL = 0x00000004
    MODIFY_CHANNELS = 0x00000008
    TEXTMESSAGE_BROADCAST = 0x00000010
    KICK_USERS = 0x00000020
    BAN_USERS = 0x00000040
    MOVE_USERS = 0x00000080
    OPERATOR_ENABLE = 0x00000100
    UPLOAD_FILES = 0x00000200
    DOWNLOAD_FILES = 0x00000400
    UPDATE_SERVERPROPERTIES = 0x00000800
    TRANSMIT_VOICE = 0x00001000
    TRANSMIT_VIDEOCAPTURE = 0x00002000
    TRANSMIT_DESKTOP = 0x00004000
    TRANSMIT_DESKTOPINPUT = 0x00008000
    TRANSMIT_MEDIAFILE_AUDIO = 0x00010000
    TRANSMIT_MEDIAFILE_VIDEO = 0x00020000
    LOCKED_NICKNAME = 0x00040000
    LOCKED_STATUS = 0x00080000
    RECORD_VOICE = 0x00100000
    VIEW_HIDDEN_CHANNELS = 0x00200000

    DEFAULT = (
        MULTI_LOGIN
        | VIEW_ALL_USERS
        | CREATE_TEMPORARY_CHANNEL
        | UPLOAD_FILES
        | DOWNLOAD_FILES
        | TRANSMIT_VOICE
        | TRANSMIT_VIDEOCAPTURE
        | TRANSMIT_DESKTOP
        | TRANSMIT_DESKTOPINPUT
        | TRANSMIT_MEDIAFILE_AUDIO
        | TRANSMIT_MEDIAFILE_VIDEO
    )
    ALL = 0x003FFFFF


def parse_rights(names: list[str] | tuple[str, ...]) -> UserRight:
    """Combine right names (case-insensitive, e.g. ``"kick_users"``) into a mask.

    Raises:
        ValueError: On an unknown right name.
    """
    mask = UserRight.NONE
    for name in names:
        key = name.strip().upper().replace("-", "_")
        try:
            mask |= UserRight[key]
        except KeyError:
            msg = f"Unknown user right: {name!r}"
            raise ValueError(msg) from None
    return mask


class ServerEndpoint(BaseModel):
    """Address of a managed server.

    ``name`` is the configuration key used to scope premoderation
    entries; ``title`` is for display only.
    """

    model_config = {"frozen": True}

    host: str
    port: int = Field(ge=1, le=65535)
    name: str = ""
    title: str = ""


class Account(BaseModel):
    """A server account: the session identity or a managed remote account.

    Field contents are checked by :class:`ttreg.domain.validation.Validator`
    before construction; this model only guarantees types and that
    ``rights`` stays inside the known bitmask.
    """

    model_config = {"frozen": True}

    username: str
    password: str = ""
    nickname: str = ""
    type: UserType = UserType.DEFAULT
    rights: UserRight = UserRight.DEFAULT

    @field_validator("rights", mode="before")
    @classmethod
    def _rights_subset(cls, value: Any) -> Any:
        if isinstance(value, bool) or not isinstance(value, int):
            return value
        if value < 0 or value & ~int(UserRight.ALL):
            msg = f"Unknown bits in rights mask: {value:#x}"
            raise ValueError(msg)
        return UserRight(value)

    def public_dict(self) -> dict[str, Any]:
        """Account fields safe to display or log (no password)."""
        return {
            "username": self.username,
            "nickname": self.nickname,
            "type": self.type.name.lower(),
            "rights": int(self.rights),
        }
