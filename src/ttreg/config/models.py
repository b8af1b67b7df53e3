"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, ttreg.toml only contains
overrides. A working setup needs at least one ``[servers.<name>]`` table
with a ``system_account``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, model_validator

from ttreg.domain.accounts import Account, ServerEndpoint, UserRight, UserType
from ttreg.domain.validation import DEFAULT_RULES, Validator


class SystemAccountConfig(BaseModel):
    """[servers.<name>.system_account] — admin account used for every operation."""

    model_config = {"frozen": True}

    username: str = Field(min_length=1)
    password: str = Field(min_length=1)
    nickname: str = "Registration System"


class ModeratorConfig(BaseModel):
    """One entry of [servers.<name>.premod] moderators."""

    model_config = {"frozen": True}

    email: str
    locale: str = "en"


class PremodConfig(BaseModel):
    """[servers.<name>.premod] section."""

    model_config = {"frozen": True}

    enabled: bool = False
    moderators: list[ModeratorConfig] = Field(default_factory=list)

    @model_validator(mode="after")
    def _moderators_required(self) -> PremodConfig:
        if self.enabled and not self.moderators:
            msg = "premoderation is enabled but no moderators are configured"
            raise ValueError(msg)
        return self


class ServerConfig(BaseModel):
    """[servers.<name>] section."""

    model_config = {"frozen": True}

    title: str = ""
    host: str
    port: int = 10333
    system_account: SystemAccountConfig
    premod: PremodConfig = Field(default_factory=PremodConfig)

    @field_validator("host")
    @classmethod
    def _valid_host(cls, value: str) -> str:
        if not Validator().is_valid_host(value):
            msg = f"invalid host: {value!r}"
            raise ValueError(msg)
        return value

    @field_validator("port")
    @classmethod
    def _valid_port(cls, value: int) -> int:
        if not Validator().is_valid_port(value):
            msg = f"port must be between 1 and 65535, got {value}"
            raise ValueError(msg)
        return value

    def endpoint(self, name: str) -> ServerEndpoint:
        return ServerEndpoint(host=self.host, port=self.port, name=name, title=self.title or name)

    def system_user(self) -> Account:
        acc = self.system_account
        return Account(
            username=acc.username,
            password=acc.password,
            nickname=acc.nickname,
            type=UserType.ADMIN,
            rights=UserRight.ALL,
        )


class ValidationConfig(BaseModel):
    """[validation] section — full-match regexes for user input."""

    model_config = {"frozen": True}

    username: str = DEFAULT_RULES["username"]
    password: str = DEFAULT_RULES["password"]
    nickname: str = DEFAULT_RULES["nickname"]

    def rules(self) -> dict[str, str]:
        return {"username": self.username, "password": self.password, "nickname": self.nickname}


class QueueConfig(BaseModel):
    """[premod] section — where the premoderation queue lives."""

    model_config = {"frozen": True}

    queue_path: str = "premod.json"


class ProtocolConfig(BaseModel):
    """[protocol] section."""

    model_config = {"frozen": True}

    version: str = "5.0"
    timeout: float = Field(default=30.0, ge=0)

