import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ..main import app
from ..core import config
from ..core.database import Base, get_db
from ..core.security import create_access_token, hash_password
from ..storage.gateway import StorageGateway, get_storage_gateway
from ..user.models import User

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

API = config.API_PREFIX


class FakeMinio:
    """In-memory stand-in for minio.Minio, recording every call the gateway makes."""

    def __init__(self):
        self.buckets = set()
        self.objects = {}
        self.removed = []
        self.unreachable = False
        self.fail_put = False
        self.fail_remove = False
        self.secrets_seen = []

    def bucket_exists(self, bucket_name):
        if self.unreachable:
            raise ConnectionError("connection refused")
        return bucket_name in self.buckets

    def make_bucket(self, bucket_name, location=None):
        self.buckets.add(bucket_name)

    def put_object(self, bucket_name, object_name, data, length, content_type=None):
        if self.fail_put:
            raise ConnectionError("upload interrupted")
        self.objects[(bucket_name, object_name)] = data.read(length)

    def presigned_get_object(self, bucket_name, object_name, expires):
        return f"https://signed.example/{bucket_name}/{object_name}?expires={int(expires.total_seconds())}"

    def remove_object(self, bucket_name, object_name):
        if self.fail_remove:
            raise ConnectionError("remove failed")
        self.removed.append(object_name)
        self.objects.pop((bucket_name, object_name), None)


@pytest.fixture
def fake_minio():
    return FakeMinio()


@pytest.fixture
def storage(fake_minio):
    def factory(settings, timeout):
        fake_minio.secrets_seen.append(settings.secret_key)
        return fake_minio

    return StorageGateway(client_factory=factory)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db, storage):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage_gateway] = lambda: storage
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_user(db, username, role="user", status="approved", password="secret123", nickname=None):
    user = User(
        email=f"{username}@example.com",
        username=username,
        nickname=nickname or username,
        password=hash_password(password),
        role=role,
        status=status,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user.id, user.email, user.role)}"}


@pytest.fixture
def admin(db):
    return make_user(db, "admin", role="admin")


@pytest.fixture
def alice(db):
    return make_user(db, "alice", nickname="Alice")


@pytest.fixture
def bob(db):
    return make_user(db, "bob")


def portfolio_payload(title="Landing page", versions=None, **overrides):
    payload = {
        "title": title,
        "description": "A small landing page",
        "category": "web",
        "tags": ["html", "landing"],
        "aiLevel": "assisted",
        "versions": versions if versions is not None else [
            {"title": "First draft", "htmlContent": "<html><h1>Hello</h1></html>"},
        ],
    }
    payload.update(overrides)
    return payload


def create_portfolio(client, user, **kwargs):
    response = client.post(f"{API}/portfolios", json=portfolio_payload(**kwargs), headers=auth_headers(user))
    assert response.status_code == 201, response.text
    return response.json()["data"]
