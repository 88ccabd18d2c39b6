from __future__ import annotations

from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from stockflow.api.deps import request_identity as request_identity_module
from stockflow.schemas.request_identity import RequestIdentity


def _build_app() -> FastAPI:
    app = FastAPI()

    @app.get("/whoami")
    def whoami(identity: RequestIdentity = Depends(request_identity_module.get_request_identity)):
        return {"email": identity.email, "source": identity.auth_source}

    @app.get("/email")
    def email(user_email: str = Depends(request_identity_module.get_request_email)):
        return {"email": user_email}

    return app


def test_uses_x_user_email_header():
    with TestClient(_build_app()) as client:
        r = client.get("/whoami", headers={"X-User-Email": "  Buyer@Clinic.LOCAL "})
        assert r.status_code == 200
        assert r.json() == {"email": "buyer@clinic.local", "source": "legacy_header"}


def test_falls_back_to_x_user_header():
    with TestClient(_build_app()) as client:
        r = client.get("/whoami", headers={"X-User": "ops@clinic.local"})
        assert r.json()["email"] == "ops@clinic.local"


def test_missing_headers_default_to_system_actor():
    with TestClient(_build_app()) as client:
        assert client.get("/email").json() == {"email": "system@local"}
