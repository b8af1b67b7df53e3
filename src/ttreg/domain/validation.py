"""Input validation for accounts and server addresses.

Each check is a side-effect-free predicate named ``is_valid_<subject>``.
Only :meth:`Validator.build_account` raises, and only after every field
has been checked, so the error names all offending fields at once.
"""

from __future__ import annotations

import re
from collections.abc import Mapping

from ttreg.domain.accounts import Account, UserRight, UserType
from ttreg.domain.errors import InvalidArgumentError

DEFAULT_RULES: dict[str, str] = {
    "username": r".+",
    "password": r".+",
    "nickname": r".*",
}

_HOST_RE = re.compile(r"^[A-Za-z0-9]([A-Za-z0-9.\-:]*[A-Za-z0-9])?$")
_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")


class Validator:
    """Regex-driven validation of user-supplied account fields.

    *rules* maps a subject (``username``, ``password``, ``nickname``) to a
    pattern that must match the whole value. Missing subjects fall back to
    :data:`DEFAULT_RULES`.
    """

    def __init__(self, rules: Mapping[str, str] | None = None) -> None:
        merged = {**DEFAULT_RULES, **(rules or {})}
        self._rules = {key: re.compile(pattern, re.DOTALL) for key, pattern in merged.items()}

    def _matches(self, subject: str, value: str) -> bool:
        # Line breaks and control characters never belong in account fields.
        if _CONTROL_RE.search(value):
            return False
        return self._rules[subject].fullmatch(value) is not None

    def is_valid_username(self, value: str) -> bool:
        return self._matches("username", value)

    def is_valid_password(self, value: str) -> bool:
        return self._matches("password", value)

    def is_valid_nickname(self, value: str) -> bool:
        return self._matches("nickname", value)

    def is_valid_host(self, value: str) -> bool:
        return bool(_HOST_RE.match(value))

    def is_valid_port(self, value: int) -> bool:
        return 1 <= value <= 65535

    def invalid_fields(self, username: str, password: str, nickname: str = "") -> list[str]:
        """Return the names of the fields that fail validation, in order."""
        invalid: list[str] = []
        if not self.is_valid_username(username):
            invalid.append("username")
        if not self.is_valid_password(password):
            invalid.append("password")
        if not self.is_valid_nickname(nickname):
            invalid.append("nickname")
        return invalid

    def build_account(
        self,
        username: str,
        password: str,
        nickname: str = "",
        *,
        user_type: UserType = UserType.DEFAULT,
        rights: UserRight = UserRight.DEFAULT,
    ) -> Account:
        """Validate the fields and construct an :class:`Account`.

        Raises:
            InvalidArgumentError: Listing every invalid field.
        """
        invalid = self.invalid_fields(username, password, nickname)
        if invalid:
            msg = "The following user properties are invalid: " + ", ".join(invalid)
            raise InvalidArgumentError(msg)
        return Account(
            username=username,
            password=password,
            nickname=nickname,
            type=user_type,
            rights=rights,
        )
