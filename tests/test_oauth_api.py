"""Tests for POST /api/auth/oauth/{provider} with an in-process code exchanger."""

import pytest
from fastapi.testclient import TestClient

from mdnotes.exceptions import AuthenticationError
from mdnotes.main import create_app
from mdnotes.services import OAuthProfile
from tests.conftest import register


class FakeProvider:
    """Maps known authorization codes to canned profiles."""

    def __init__(self, name, profiles):
        self.name = name
        self.profiles = profiles
        self.codes_seen = []

    def fetch_profile(self, code):
        self.codes_seen.append(code)
        if code not in self.profiles:
            raise AuthenticationError("Invalid authorization code")
        return self.profiles[code]


@pytest.fixture()
def github():
    return FakeProvider("github", {
        "carol-code": OAuthProfile(provider_id="7", username="Carol", avatar_url="https://img/c.png"),
        "alice-code": OAuthProfile(provider_id="8", username="alice-gh", email="Alice@Example.com"),
    })


@pytest.fixture()
def client(test_settings, database, github):
    app = create_app(test_settings, database=database, oauth_providers={"github": github})
    with TestClient(app) as c:
        yield c


def oauth_login(client, code, provider="github"):
    return client.post(f"/api/auth/oauth/{provider}", json={"code": code})


class TestOAuthLogin:

    def test_new_profile_creates_user_and_returns_working_token(self, client, github):
        resp = oauth_login(client, "carol-code")

        assert resp.status_code == 200
        body = resp.json()
        assert body["is_new"] is True
        assert body["user"]["username"] == "carol"
        assert body["user"]["email"] == "7+carol@users.noreply.github.com"
        assert body["user"]["has_password"] is False
        assert github.codes_seen == ["carol-code"]

        profile = client.get(
            "/api/auth/profile", headers={"Authorization": f"Bearer {body['token']}"}
        )
        assert profile.status_code == 200
        assert profile.json()["linked_providers"] == ["github"]

    def test_repeat_login_returns_same_user(self, client):
        first = oauth_login(client, "carol-code").json()
        second = oauth_login(client, "carol-code").json()
        assert second["is_new"] is False
        assert second["user"]["id"] == first["user"]["id"]

    def test_links_existing_account_by_email(self, client):
        headers = register(client)
        own_id = client.get("/api/auth/profile", headers=headers).json()["id"]

        resp = oauth_login(client, "alice-code")

        assert resp.status_code == 200
        assert resp.json()["is_new"] is False
        assert resp.json()["user"]["id"] == own_id
        assert client.get("/api/auth/profile", headers=headers).json()["linked_providers"] == ["github"]

    def test_rejected_code_is_401(self, client):
        resp = oauth_login(client, "forged")
        assert resp.status_code == 401
        assert resp.json()["error"] == "UNAUTHORIZED"

    def test_blank_code_is_400(self, client, github):
        resp = oauth_login(client, "   ")
        assert resp.status_code == 400
        assert github.codes_seen == []

    def test_unsupported_provider_is_400(self, client):
        resp = oauth_login(client, "carol-code", provider="myspace")
        assert resp.status_code == 400
        assert resp.json()["details"]["field"] == "provider"

    def test_unconfigured_provider_is_400(self, client):
        resp = oauth_login(client, "carol-code", provider="google")
        assert resp.status_code == 400
        assert "not configured" in resp.json()["message"]
