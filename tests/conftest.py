from __future__ import annotations

from collections.abc import Iterator
from io import BytesIO
from pathlib import Path
import sys
from types import SimpleNamespace

import pytest
from botocore.exceptions import ClientError
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from politirate.api.deps import get_db_session
from politirate.api.routes.auth import refresh_token_store
from politirate.main import app
from politirate.models import Base, ElectionType, Gender, Leader, LeaderStatus, User, UserRole
from politirate.obs import AuditMiddleware
from politirate.services.users import register_user

ADMIN_EMAIL = "admin@example.com"
CITIZEN_EMAIL = "citizen@example.com"
PASSWORD = "changeme"


class InMemoryS3Client:
    """Simple in-memory S3 stub used by the audit middleware during tests."""

    exceptions = SimpleNamespace(NoSuchKey=type("NoSuchKey", (Exception,), {}))

    def __init__(self) -> None:
        self._buckets: dict[str, dict[str, bytes]] = {}

    def head_bucket(self, *, Bucket: str) -> None:
        if Bucket not in self._buckets:
            raise ClientError({"Error": {"Code": "404", "Message": "Not Found"}}, "HeadBucket")

    def create_bucket(self, *, Bucket: str, **_: object) -> None:
        self._buckets.setdefault(Bucket, {})

    def get_object(self, *, Bucket: str, Key: str) -> dict[str, BytesIO]:
        if Bucket not in self._buckets:
            raise ClientError({"Error": {"Code": "NoSuchBucket"}}, "GetObject")
        bucket = self._buckets[Bucket]
        if Key not in bucket:
            raise self.exceptions.NoSuchKey()
        return {"Body": BytesIO(bucket[Key])}

    def put_object(self, *, Bucket: str, Key: str, Body: bytes, **_: object) -> dict[str, str]:
        bucket = self._buckets.setdefault(Bucket, {})
        bucket[Key] = Body.encode("utf-8") if isinstance(Body, str) else Body
        return {"ETag": "in-memory"}

    @property
    def buckets(self) -> dict[str, dict[str, bytes]]:
        return self._buckets


DATABASE_URL = "sqlite+pysqlite:///./test_suite.db"


engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture(autouse=True)
def audit_s3_client(monkeypatch: pytest.MonkeyPatch) -> Iterator[InMemoryS3Client]:
    client = InMemoryS3Client()

    def _client_factory(*args: object, **kwargs: object) -> InMemoryS3Client:
        return client

    monkeypatch.setattr("politirate.obs.audit.boto3.client", _client_factory)
    stack = getattr(app, "middleware_stack", None)
    middleware = getattr(stack, "app", None)
    while middleware is not None and hasattr(middleware, "app"):
        if isinstance(middleware, AuditMiddleware):
            middleware.sink.reset()
        middleware = getattr(middleware, "app", None)
    yield client


@pytest.fixture(autouse=True)
def reset_refresh_store() -> Iterator[None]:
    refresh_token_store.reset()
    yield
    refresh_token_store.reset()


@pytest.fixture()
def db_session() -> Iterator[Session]:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture()
def admin_user(db_session: Session) -> User:
    return register_user(db_session, email=ADMIN_EMAIL, password=PASSWORD, role=UserRole.ADMIN, name="Admin")


@pytest.fixture()
def citizen(db_session: Session) -> User:
    return register_user(
        db_session,
        email=CITIZEN_EMAIL,
        password=PASSWORD,
        name="Citizen A",
        gender=Gender.FEMALE,
        state="Kerala",
    )


def make_user(db_session: Session, email: str, **profile: object) -> User:
    return register_user(db_session, email=email, password=PASSWORD, **profile)


def make_leader(db_session: Session, *, name: str = "Leader One", status: LeaderStatus = LeaderStatus.APPROVED) -> Leader:
    leader = Leader(
        name=name,
        party_name="Civic Party",
        gender=Gender.MALE,
        age=55,
        constituency="Central",
        election_type=ElectionType.STATE,
        location={"state": "Kerala", "district": "Ernakulam"},
        previous_elections=[],
        status=status,
    )
    db_session.add(leader)
    db_session.commit()
    db_session.refresh(leader)
    return leader


@pytest.fixture()
def leader(db_session: Session) -> Leader:
    return make_leader(db_session)


@pytest.fixture()
def client(db_session: Session, audit_s3_client: InMemoryS3Client) -> Iterator[TestClient]:
    def override_get_db() -> Iterator[Session]:
        try:
            yield db_session
        finally:
            db_session.rollback()

    app.dependency_overrides[get_db_session] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.pop(get_db_session, None)


def login_headers(client: TestClient, email: str, password: str = PASSWORD) -> dict[str, str]:
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture()
def auth_headers(client: TestClient, admin_user: User) -> dict[str, str]:
    return login_headers(client, ADMIN_EMAIL)


@pytest.fixture()
def user_headers(client: TestClient, citizen: User) -> dict[str, str]:
    return login_headers(client, CITIZEN_EMAIL)


@pytest.fixture()
def user_factory(db_session: Session):
    def _make(email: str, **profile: object) -> User:
        return make_user(db_session, email, **profile)

    return _make


@pytest.fixture()
def leader_factory(db_session: Session):
    def _make(**kwargs: object) -> Leader:
        return make_leader(db_session, **kwargs)

    return _make


@pytest.fixture()
def login(client: TestClient):
    def _login(email: str, password: str = PASSWORD) -> dict[str, str]:
        return login_headers(client, email, password)

    return _login
