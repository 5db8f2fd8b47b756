import os

# Must be set before handyhub.config is imported
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("SECURITY_HEADERS_ENABLED", "false")
os.environ.setdefault("DB_LOG_SLOW_QUERIES", "false")
os.environ.setdefault("SEED_SERVICES", "false")

from datetime import date, timedelta  # noqa: E402

import pytest  # noqa: E402
from botocore.exceptions import ClientError  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from handyhub.auth import create_access_token, hash_password  # noqa: E402
from handyhub.database import Base, get_db  # noqa: E402
from handyhub.main import app  # noqa: E402
from handyhub.media_store import MediaStore, get_media_store  # noqa: E402
from handyhub.models import AVAILABILITY_SLOTS, Service, User, Worker  # noqa: E402
from handyhub.notifications import get_notification_sender  # noqa: E402

DEFAULT_PASSWORD = "Secret123"


class FakeR2Client:
    """Records put/delete calls in place of the boto3 S3 client"""

    def __init__(self):
        self.objects = {}
        self.deleted = []
        self.fail_uploads = False

    def put_object(self, Bucket, Key, Body, **kwargs):
        if self.fail_uploads:
            raise ClientError({"Error": {"Code": "InternalError", "Message": "R2 unavailable"}}, "PutObject")
        self.objects[Key] = {"bucket": Bucket, "body": Body, **kwargs}
        return {"ETag": "test"}

    def delete_object(self, Bucket, Key):
        self.deleted.append(Key)
        self.objects.pop(Key, None)
        return {}


@pytest.fixture
def engine():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def sent_notifications():
    return []


@pytest.fixture
def r2_client():
    return FakeR2Client()


@pytest.fixture
def client(session_factory, sent_notifications, r2_client):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    async def record(notification):
        sent_notifications.append(notification)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notification_sender] = lambda: record
    app.dependency_overrides[get_media_store] = lambda: MediaStore(
        client=r2_client, bucket="test-bucket", public_url="https://cdn.test"
    )
    # No context manager: the lifespan (table creation, bootstrap, redis probe) targets the real engine
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session):
    counter = {"n": 0}

    def _make_user(role="user", email=None, password=DEFAULT_PASSWORD, verified=True, active=True, name=None):
        counter["n"] += 1
        user = User(
            name=name or f"Test User {counter['n']}",
            email=email or f"user{counter['n']}@example.com",
            password_hash=hash_password(password),
            phone="+15551234567",
            role=role,
            is_email_verified=verified,
            is_active=active,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_worker(db_session, make_user):
    def _make_worker(user=None, status="approved", hourly_rate=60.0, availability=None, services=None):
        user = user or make_user(role="worker" if status == "approved" else "user")
        worker = Worker(
            user_id=user.id,
            first_name="Wendy",
            last_name="Worker",
            email=user.email,
            phone="+15557654321",
            address="42 Artisan Avenue, Springfield",
            services=services or ["cleaning", "handyman"],
            experience="3-5",
            hourly_rate=hourly_rate,
            availability=list(AVAILABILITY_SLOTS) if availability is None else availability,
            bio="Reliable and careful",
            id_document_url="https://cdn.test/id.pdf",
            id_document_public_id="handyhub/worker-documents/id.pdf",
            application_status=status,
            is_verified=status == "approved",
            is_available=True,
        )
        db_session.add(worker)
        db_session.commit()
        db_session.refresh(worker)
        return worker

    return _make_worker


@pytest.fixture
def make_service(db_session):
    counter = {"n": 0}

    def _make_service(name=None, category="cleaning", is_active=True):
        counter["n"] += 1
        service = Service(
            name=name or f"Deep Clean {counter['n']}",
            title="Deep cleaning",
            description="Top to bottom cleaning of the whole home",
            category=category,
            price_min=50,
            price_max=120,
            duration_min=60,
            duration_max=240,
            requirements=[],
            includes=[],
            is_active=is_active,
        )
        db_session.add(service)
        db_session.commit()
        db_session.refresh(service)
        return service

    return _make_service


@pytest.fixture
def auth_headers():
    def _auth_headers(user):
        return {"Authorization": f"Bearer {create_access_token(user)}"}

    return _auth_headers


@pytest.fixture
def booking_date():
    return date.today() + timedelta(days=7)


@pytest.fixture
def booking_payload(booking_date):
    def _payload(service, worker, start="10:00", end="11:30", guest=True, **overrides):
        payload = {
            "serviceId": service.id,
            "workerId": worker.id,
            "scheduledDate": booking_date.isoformat(),
            "scheduledTime": {"start": start, "end": end},
            "location": {
                "address": "221 Baker Street, Springfield",
                "coordinates": [-73.9857, 40.7484],
                "instructions": "Ring the bell",
            },
            "notes": "Please bring supplies",
        }
        if guest:
            payload["guestInfo"] = {
                "name": "Grace Guest",
                "email": "grace@example.com",
                "phone": "+15550001111",
                "address": "221 Baker Street, Springfield",
            }
        payload.update(overrides)
        return payload

    return _payload
