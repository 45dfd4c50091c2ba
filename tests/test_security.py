"""Tests for roles and caller tokens."""

from datetime import datetime, timedelta

import pytest

from config import settings
from core.errors import NotAuthorized, Unauthenticated
from core.roles import Actor, Role, require_admin, resolve_role
from core.security import create_access_token, verify_token


class TestRoles:
    def test_admin_passes_gate(self):
        require_admin(Actor("0xAd111", Role.ADMIN), "accept registration")

    def test_user_is_denied(self):
        with pytest.raises(NotAuthorized) as exc_info:
            require_admin(Actor("0xA11ce"), "accept registration")
        assert exc_info.value.details == {"account": "0xA11ce", "role": "user"}

    def test_unknown_claim_is_user(self):
        assert resolve_role("0xA11ce", "superuser") is Role.USER

    def test_admin_claim_without_allow_list(self):
        assert resolve_role("0xAd111", "ADMIN") is Role.ADMIN

    def test_admin_claim_checked_against_allow_list(self, monkeypatch):
        monkeypatch.setattr(settings, "ADMIN_ACCOUNTS", ["0xAD111"])
        assert resolve_role("0xad111", "admin") is Role.ADMIN
        assert resolve_role("0xA11ce", "admin") is Role.USER


class TestTokens:
    def test_round_trip(self):
        actor = verify_token(create_access_token("0xAd111", Role.ADMIN))
        assert actor == Actor("0xAd111", Role.ADMIN)

    def test_default_role_is_user(self):
        assert verify_token(create_access_token("0xA11ce")).role is Role.USER

    def test_tampered_token(self):
        token = create_access_token("0xA11ce")
        with pytest.raises(Unauthenticated):
            verify_token(token[:-4] + "AAAA")

    def test_expired_token(self):
        token = create_access_token("0xA11ce", extra_data={"exp": datetime.utcnow() - timedelta(minutes=1)})
        with pytest.raises(Unauthenticated):
            verify_token(token)

    def test_missing_subject(self):
        token = create_access_token("", Role.ADMIN)
        with pytest.raises(Unauthenticated):
            verify_token(token)
