import threading
from datetime import date, timedelta

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from handyhub.database import Base
from handyhub.domain.bookings.schemas import BookingCreate
from handyhub.domain.bookings.service import WORKER_LOCK_STRIPES, BookingService, worker_lock
from handyhub.exceptions import ConflictError
from handyhub.models import AVAILABILITY_SLOTS, Booking, Service, User, Worker

ATTEMPTS = 8


def seed(session):
    user = User(name="Slot Worker", email="slots@example.com", password_hash="x", phone="+15550000000", role="worker")
    session.add(user)
    session.flush()
    worker = Worker(
        user_id=user.id,
        first_name="Slot",
        last_name="Worker",
        email=user.email,
        phone=user.phone,
        address="1 Queue Street, Springfield",
        services=["cleaning"],
        availability=list(AVAILABILITY_SLOTS),
        hourly_rate=50,
        id_document_url="https://cdn.test/id.pdf",
        application_status="approved",
        is_verified=True,
    )
    service = Service(
        name="Window Cleaning",
        description="Inside and outside windows",
        category="cleaning",
        price_min=20,
        price_max=80,
        duration_min=60,
        duration_max=120,
    )
    session.add_all([worker, service])
    session.commit()
    return worker.id, service.id


def test_concurrent_creates_for_same_slot(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    SessionFactory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    with SessionFactory() as session:
        worker_id, service_id = seed(session)

    payload = BookingCreate(
        serviceId=service_id,
        workerId=worker_id,
        scheduledDate=date.today() + timedelta(days=3),
        scheduledTime={"start": "14:00", "end": "15:00"},
        location={"address": "77 Race Condition Road", "coordinates": [10.0, 20.0]},
        guestInfo={
            "name": "Racer",
            "email": "racer@example.com",
            "phone": "+15551112222",
            "address": "77 Race Condition Road",
        },
    )

    barrier = threading.Barrier(ATTEMPTS)
    outcomes = []
    outcomes_lock = threading.Lock()

    def attempt():
        session = SessionFactory()
        try:
            barrier.wait()
            BookingService(session).create_booking(payload, None)
            result = "created"
        except ConflictError:
            result = "conflict"
        except Exception as e:  # surfaced through the assertion below
            result = f"error: {e!r}"
        finally:
            session.close()
        with outcomes_lock:
            outcomes.append(result)

    threads = [threading.Thread(target=attempt) for _ in range(ATTEMPTS)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    assert sorted(outcomes) == ["conflict"] * (ATTEMPTS - 1) + ["created"]

    with SessionFactory() as session:
        assert session.query(Booking).count() == 1
        assert session.get(Worker, worker_id).total_bookings == 1

    engine.dispose()


def test_worker_locks_are_a_fixed_pool():
    locks = {id(worker_lock(worker_id)) for worker_id in range(1, 10_000)}
    assert len(locks) == WORKER_LOCK_STRIPES
    assert worker_lock(7) is worker_lock(7 + WORKER_LOCK_STRIPES)
