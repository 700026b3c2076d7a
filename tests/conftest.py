import os
import tempfile

# Settings are read at import time, so the environment must be in place first
os.environ["ENVIRONMENT"] = "development"
os.environ["SECRET_KEY"] = "test-secret-key-that-is-long-enough-for-hs256"
os.environ["SQLALCHEMY_DATABASE_URI"] = "sqlite://"
os.environ["METRICS_ENABLED"] = "false"
os.environ["UPLOADS_DIR"] = tempfile.mkdtemp(prefix="cling-uploads-")
os.environ["STABILITY_API_KEY"] = "test-stability-key"
os.environ["GEMINI_API_KEY"] = "test-gemini-key"

from typing import List, Optional, Tuple  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from cling.api import deps  # noqa: E402
from cling.core.exceptions import UpstreamError  # noqa: E402
from cling.db import session as db_session  # noqa: E402
from cling.db.base import Base  # noqa: E402
from cling import models  # noqa: E402,F401


class FakeEmailService:
    """Captures outgoing codes instead of talking to SMTP"""

    def __init__(self):
        self.sent: List[Tuple[str, str, int]] = []
        self.fail = False

    def send_otp_email(self, to_email: str, code: str, expiry_minutes: int) -> None:
        if self.fail:
            raise UpstreamError("Failed to send OTP email", detail="smtp down")
        self.sent.append((to_email, code, expiry_minutes))

    def last_code_for(self, email: str) -> Optional[str]:
        for to_email, code, _ in reversed(self.sent):
            if to_email == email:
                return code
        return None


@pytest.fixture(autouse=True)
def _database():
    Base.metadata.create_all(bind=db_session.engine)
    yield
    Base.metadata.drop_all(bind=db_session.engine)


@pytest.fixture
def db():
    session = db_session.SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def email_service() -> FakeEmailService:
    return FakeEmailService()


@pytest.fixture
def app(email_service):
    from cling.main import create_application

    application = create_application()
    application.dependency_overrides[deps.get_email_service] = lambda: email_service
    return application


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def login(client, email_service):
    """Run the OTP flow for an email; the client keeps the session cookie"""

    def _login(email: str = "user@example.com") -> dict:
        res = client.post("/api/send-otp", json={"email": email})
        assert res.status_code == 200, res.text
        code = email_service.last_code_for(email)
        res = client.post("/api/verify-otp", json={"email": email, "otp": code})
        assert res.status_code == 200, res.text
        return res.json()["user"]

    return _login


@pytest.fixture
def logged_in_client(client, login):
    login()
    return client
