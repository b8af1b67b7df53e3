"""Tests for account field validation."""

import pytest

from ttreg.domain.accounts import UserRight, UserType
from ttreg.domain.errors import InvalidArgumentError
from ttreg.domain.validation import Validator


class TestDefaultRules:
    def test_username_and_password_must_be_non_empty(self) -> None:
        v = Validator()
        assert v.is_valid_username("a")
        assert not v.is_valid_username("")
        assert not v.is_valid_password("")

    def test_nickname_may_be_empty(self) -> None:
        assert Validator().is_valid_nickname("")

    @pytest.mark.parametrize("value", ["bad\nname", "bad\rname", "tab\there", "nul\x00"])
    def test_control_characters_rejected(self, value: str) -> None:
        v = Validator()
        assert not v.is_valid_username(value)
        assert not v.is_valid_nickname(value)


class TestConfiguredRules:
    def test_full_match_required(self) -> None:
        v = Validator({"username": "[a-z]{3,8}"})
        assert v.is_valid_username("alice")
        assert not v.is_valid_username("al")
        assert not v.is_valid_username("alice!")

    def test_unset_subjects_keep_defaults(self) -> None:
        v = Validator({"username": "[a-z]+"})
        assert v.is_valid_password("anything at all")


class TestHostAndPort:
    @pytest.mark.parametrize("host", ["localhost", "tt.example.org", "127.0.0.1", "fe80::1"])
    def test_valid_hosts(self, host: str) -> None:
        assert Validator().is_valid_host(host)

    @pytest.mark.parametrize("host", ["", "bad host", "-lead", "trail.", "a/b"])
    def test_invalid_hosts(self, host: str) -> None:
        assert not Validator().is_valid_host(host)

    def test_port_bounds(self) -> None:
        v = Validator()
        assert v.is_valid_port(1)
        assert v.is_valid_port(65535)
        assert not v.is_valid_port(0)
        assert not v.is_valid_port(65536)


class TestBuildAccount:
    def test_builds_default_account(self) -> None:
        acc = Validator().build_account("bob", "pw", "Bobby")
        assert acc.username == "bob"
        assert acc.nickname == "Bobby"
        assert acc.type is UserType.DEFAULT
        assert acc.rights == UserRight.DEFAULT

    def test_type_and_rights_passed_through(self) -> None:
        acc = Validator().build_account(
            "bob", "pw", user_type=UserType.ADMIN, rights=UserRight.KICK_USERS
        )
        assert acc.type is UserType.ADMIN
        assert acc.rights == UserRight.KICK_USERS

    def test_names_every_invalid_field(self) -> None:
        v = Validator({"nickname": "[A-Z].*"})
        with pytest.raises(InvalidArgumentError) as info:
            v.build_account("", "", "lower")
        assert str(info.value) == (
            "The following user properties are invalid: username, password, nickname"
        )

    def test_invalid_fields_lists_in_order(self) -> None:
        assert Validator().invalid_fields("ok", "") == ["password"]
