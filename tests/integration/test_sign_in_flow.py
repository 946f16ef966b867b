"""End-to-end sign-in flows through the HTTP API and the in-memory catalog."""

from typing import Any

import pytest
from fastapi.testclient import TestClient

from src.catalog_sync.api.http.app_data import ApplicationDependencies
from src.catalog_sync.runtime.config.config_data import (
    CatalogConfig,
    ConfigData,
    ConvergenceConfig,
)
from tests.utils import FakeSleep, make_jwt, make_user


def oidc_body(
    access_claims: dict[str, Any] | None,
    *,
    email: str | None = "jdoe@example.com",
    username: str = "jdoe",
) -> dict[str, Any]:
    return {
        "profile": {"email": email},
        "result": {
            "full_profile": {
                "userinfo": {"preferred_username": username},
                "tokenset": {
                    "access_token": make_jwt(access_claims)
                    if access_claims is not None
                    else None
                },
            }
        },
    }


class TestOidcSignIn:
    def test_unknown_user_is_provisioned_from_token_claims(
        self, api_client: TestClient, access_token_claims, fake_sleep: FakeSleep
    ):
        response = api_client.post(
            "/auth/oidc/sign-in", json=oidc_body(access_token_claims)
        )

        assert response.status_code == 200
        assert response.json() == {
            "entityRef": "user:default/jdoe",
            "ownershipEntityRefs": [
                "user:default/jdoe",
                "group:default/developers",
                "group:default/catalog-admin",
            ],
        }
        assert fake_sleep.delays == []

        [deferred] = api_client.get("/catalog/users").json()
        assert deferred["entity"]["spec"]["profile"]["email"] == "jdoe@example.com"

    def test_existing_catalog_user_is_matched_by_username(
        self,
        api_client: TestClient,
        app_dependencies: ApplicationDependencies,
        access_token_claims,
    ):
        app_dependencies.catalog.seed(
            make_user("asmith", member_of=["group:default/admins"])
        )

        response = api_client.post(
            "/auth/oidc/sign-in",
            json=oidc_body(access_token_claims, username="asmith"),
        )

        assert response.status_code == 200
        assert response.json()["ownershipEntityRefs"] == [
            "user:default/asmith",
            "group:default/admins",
        ]
        assert len(app_dependencies.entity_cache) == 0

    def test_malformed_access_token(self, api_client: TestClient):
        body = oidc_body(None)
        body["result"]["full_profile"]["tokenset"]["access_token"] = "not-a-jwt"

        response = api_client.post("/auth/oidc/sign-in", json=body)

        assert response.status_code == 401
        assert response.json()["error"] == "MALFORMED_TOKEN"

    def test_missing_email(self, api_client: TestClient, access_token_claims):
        response = api_client.post(
            "/auth/oidc/sign-in", json=oidc_body(access_token_claims, email=None)
        )

        assert response.status_code == 401
        assert response.json()["error"] == "MISSING_EMAIL"
        assert api_client.get("/catalog/users").json() == []


class TestSlowCatalog:
    @pytest.fixture
    def api_config(self) -> ConfigData:
        return ConfigData(
            catalog=CatalogConfig(read_lag=5),
            convergence=ConvergenceConfig(max_attempts=3, retry_delay_ms=10),
        )

    def test_sign_in_fails_when_catalog_does_not_converge(
        self, api_client: TestClient, access_token_claims, fake_sleep: FakeSleep
    ):
        response = api_client.post(
            "/auth/oidc/sign-in", json=oidc_body(access_token_claims)
        )

        assert response.status_code == 503
        body = response.json()
        assert body["error"] == "NOT_CONVERGED"
        assert body["details"] == {"entity_ref": "user:default/jdoe", "attempts": 3}
        assert fake_sleep.delays == [0.01, 0.01]


class TestOAuth2ProxySignIn:
    @pytest.fixture
    def api_config(self) -> ConfigData:
        return ConfigData()

    @pytest.fixture(autouse=True)
    def _no_header_override(self, monkeypatch):
        monkeypatch.delenv("OAUTH_USER_HEADER", raising=False)

    def test_forwarded_user_header(
        self, api_client: TestClient, app_dependencies: ApplicationDependencies
    ):
        app_dependencies.catalog.seed(make_user("jdoe"))

        response = api_client.post(
            "/auth/oauth2-proxy/sign-in", headers={"X-Forwarded-User": "jdoe"}
        )

        assert response.status_code == 200
        assert response.json()["entityRef"] == "user:default/jdoe"

    def test_unknown_user_exhausts_the_chain(self, api_client: TestClient):
        response = api_client.post(
            "/auth/oauth2-proxy/sign-in", headers={"X-Forwarded-User": "ghost"}
        )

        assert response.status_code == 401
        assert response.json()["error"] == "SIGN_IN_FAILED"

    def test_missing_header(self, api_client: TestClient):
        response = api_client.post("/auth/oauth2-proxy/sign-in")

        assert response.status_code == 401
        assert response.json()["error"] == "MISSING_CLAIM"


class TestDefaultConfiguration:
    """Both endpoints work with the chains shipped in config.yaml."""

    @pytest.fixture
    def api_config(self) -> ConfigData:
        return ConfigData()

    @pytest.fixture(autouse=True)
    def _no_header_override(self, monkeypatch):
        monkeypatch.delenv("OAUTH_USER_HEADER", raising=False)

    def test_oidc_sign_in_provisions(
        self, api_client: TestClient, access_token_claims
    ):
        response = api_client.post(
            "/auth/oidc/sign-in", json=oidc_body(access_token_claims)
        )

        assert response.status_code == 200
        assert response.json()["entityRef"] == "user:default/jdoe"

    def test_oauth2_proxy_sign_in_after_provisioning(
        self, api_client: TestClient, access_token_claims
    ):
        api_client.post("/auth/oidc/sign-in", json=oidc_body(access_token_claims))

        response = api_client.post(
            "/auth/oauth2-proxy/sign-in", headers={"X-Forwarded-User": "jdoe"}
        )

        assert response.status_code == 200
        assert response.json()["ownershipEntityRefs"] == [
            "user:default/jdoe",
            "group:default/developers",
            "group:default/catalog-admin",
        ]

    def test_empty_group_name_is_rejected_before_provisioning(
        self, api_client: TestClient
    ):
        response = api_client.post(
            "/auth/oidc/sign-in", json=oidc_body({"groups": ["dev", ""]})
        )

        assert response.status_code == 401
        assert response.json()["error"] == "MALFORMED_TOKEN"
        assert api_client.get("/catalog/users").json() == []
