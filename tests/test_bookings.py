from datetime import date, timedelta

from handyhub.models import Booking, Service, User, Worker
from handyhub.notifications import NotificationKind


def create_booking(client, payload, headers=None):
    return client.post("/api/bookings", json=payload, headers=headers or {})


def test_guest_booking(client, make_service, make_worker, booking_payload, sent_notifications, db_session):
    service = make_service()
    worker = make_worker(hourly_rate=60)

    response = create_booking(client, booking_payload(service, worker, start="9:00", end="10:30"))
    assert response.status_code == 201, response.json()
    data = response.json()["data"]

    assert data["bookingCode"].startswith("HH")
    assert data["bookingCode"] == data["bookingCode"].upper()
    assert data["status"] == "pending"
    assert data["paymentStatus"] == "pending"
    assert data["scheduledTime"] == {"start": "09:00", "end": "10:30"}
    assert data["pricing"]["basePrice"] == 60
    assert data["pricing"]["totalAmount"] == 90
    assert data["pricing"]["additionalCharges"] == []
    assert data["customer"]["type"] == "guest"
    assert data["customer"]["guestInfo"]["email"] == "grace@example.com"
    assert [entry["status"] for entry in data["timeline"]] == ["pending"]
    assert data["timeline"][0]["notes"] == "Booking created"

    kinds = [n.kind for n in sent_notifications]
    assert kinds == [NotificationKind.BOOKING_CONFIRMATION, NotificationKind.BOOKING_NOTIFICATION]
    assert sent_notifications[0].recipient_email == "grace@example.com"
    assert sent_notifications[1].recipient_email == worker.user.email

    db_session.expire_all()
    assert db_session.get(Worker, worker.id).total_bookings == 1
    assert db_session.get(Service, service.id).popularity == 1


def test_registered_booking_counts_for_customer(
    client, make_service, make_worker, make_user, booking_payload, auth_headers, db_session
):
    service = make_service()
    worker = make_worker()
    customer = make_user()

    response = create_booking(client, booking_payload(service, worker, guest=False), auth_headers(customer))
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["customer"]["type"] == "registered"
    assert data["customer"]["user"]["id"] == customer.id

    db_session.expire_all()
    assert db_session.get(User, customer.id).total_bookings == 1


def test_guest_booking_requires_complete_info(client, make_service, make_worker, booking_payload):
    service = make_service()
    worker = make_worker()
    payload = booking_payload(service, worker)
    del payload["guestInfo"]["phone"]

    response = create_booking(client, payload)
    assert response.status_code == 400
    assert response.json()["message"] == "Complete guest info required: name, email, phone, address"

    payload.pop("guestInfo")
    assert create_booking(client, payload).status_code == 400


def test_overlapping_booking_conflicts(client, make_service, make_worker, booking_payload, db_session):
    service = make_service()
    worker = make_worker()

    assert create_booking(client, booking_payload(service, worker, start="10:00", end="12:00")).status_code == 201

    overlapping = create_booking(client, booking_payload(service, worker, start="11:00", end="13:00"))
    assert overlapping.status_code == 409
    assert overlapping.json()["message"] == "Worker already has a booking at this time"

    # Touching windows do not overlap
    adjacent = create_booking(client, booking_payload(service, worker, start="12:00", end="13:00"))
    assert adjacent.status_code == 201

    assert db_session.query(Booking).count() == 2


def test_cancelled_booking_frees_the_slot(
    client, make_service, make_worker, booking_payload, auth_headers, db_session
):
    service = make_service()
    worker = make_worker()
    first = create_booking(client, booking_payload(service, worker)).json()["data"]

    response = client.put(
        f"/api/bookings/{first['id']}/status",
        json={"status": "cancelled", "notes": "Out sick"},
        headers=auth_headers(worker.user),
    )
    assert response.status_code == 200
    assert response.json()["data"]["cancellation"]["reason"] == "Out sick"

    assert create_booking(client, booking_payload(service, worker)).status_code == 201


def test_booking_outside_availability(client, make_service, make_worker, booking_payload, booking_date):
    service = make_service()
    weekday = booking_date.strftime("%A")
    worker = make_worker(availability=[f"{weekday} Morning"])

    inside = create_booking(client, booking_payload(service, worker, start="08:00", end="09:00"))
    assert inside.status_code == 201

    outside = create_booking(client, booking_payload(service, worker, start="13:00", end="14:00"))
    assert outside.status_code == 409
    assert outside.json()["message"] == "Worker is not available at the requested time"


def test_booking_unapproved_worker(client, make_service, make_worker, booking_payload):
    service = make_service()
    worker = make_worker(status="rejected")
    response = create_booking(client, booking_payload(service, worker))
    assert response.status_code == 404
    assert response.json()["message"] == "Worker not found or not approved"


def test_booking_unknown_service(client, make_service, make_worker, booking_payload):
    service = make_service()
    worker = make_worker()
    payload = booking_payload(service, worker)
    payload["serviceId"] = 9999
    response = create_booking(client, payload)
    assert response.status_code == 404
    assert response.json()["message"] == "Service not found"


def test_booking_input_validation(client, make_service, make_worker, booking_payload):
    service = make_service()
    worker = make_worker()

    reversed_times = create_booking(client, booking_payload(service, worker, start="11:00", end="10:00"))
    assert reversed_times.status_code == 400

    past = booking_payload(service, worker, scheduledDate=(date.today() - timedelta(days=1)).isoformat())
    assert create_booking(client, past).status_code == 400

    short_address = booking_payload(service, worker)
    short_address["location"]["address"] = "Short"
    response = create_booking(client, short_address)
    assert response.status_code == 400
    assert any("at least 10 characters" in e["message"] for e in response.json()["errors"])


def test_status_transitions_by_role(
    client, make_service, make_worker, make_user, booking_payload, auth_headers, sent_notifications
):
    service = make_service()
    worker = make_worker()
    customer = make_user()
    booking = create_booking(client, booking_payload(service, worker, guest=False), auth_headers(customer)).json()["data"]
    url = f"/api/bookings/{booking['id']}/status"

    # Customers cannot confirm
    response = client.put(url, json={"status": "confirmed"}, headers=auth_headers(customer))
    assert response.status_code == 400
    assert response.json()["message"] == "Cannot change status from pending to confirmed"

    sent_notifications.clear()
    response = client.put(url, json={"status": "confirmed"}, headers=auth_headers(worker.user))
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "confirmed"
    assert [n.kind for n in sent_notifications] == [NotificationKind.BOOKING_STATUS_UPDATE]
    assert sent_notifications[0].context["status"] == "confirmed"

    # Same transition again is rejected and leaves the status alone
    again = client.put(url, json={"status": "confirmed"}, headers=auth_headers(worker.user))
    assert again.status_code == 400
    current = client.get(f"/api/bookings/{booking['id']}", headers=auth_headers(customer)).json()["data"]
    assert current["status"] == "confirmed"
    assert [entry["status"] for entry in current["timeline"]] == ["pending", "confirmed"]

    stranger = make_user()
    response = client.put(url, json={"status": "cancelled"}, headers=auth_headers(stranger))
    assert response.status_code == 403


def test_completion_updates_worker_stats(
    client, make_service, make_worker, booking_payload, auth_headers, db_session
):
    service = make_service()
    worker = make_worker(hourly_rate=40)
    booking = create_booking(client, booking_payload(service, worker, start="10:00", end="12:00")).json()["data"]
    url = f"/api/bookings/{booking['id']}/status"
    headers = auth_headers(worker.user)

    for status in ("confirmed", "in-progress", "completed"):
        assert client.put(url, json={"status": status}, headers=headers).status_code == 200

    db_session.expire_all()
    refreshed = db_session.get(Worker, worker.id)
    assert refreshed.completed_bookings == 1
    assert refreshed.total_earnings == 80
    assert refreshed.completion_rate == 100


def test_get_booking_visibility(client, make_service, make_worker, make_user, booking_payload, auth_headers):
    service = make_service()
    worker = make_worker()
    customer = make_user()
    admin = make_user(role="admin")
    booking = create_booking(client, booking_payload(service, worker, guest=False), auth_headers(customer)).json()["data"]
    url = f"/api/bookings/{booking['id']}"

    assert client.get(url, headers=auth_headers(customer)).status_code == 200
    assert client.get(url, headers=auth_headers(worker.user)).status_code == 200
    assert client.get(url, headers=auth_headers(admin)).status_code == 200
    assert client.get(url, headers=auth_headers(make_user())).status_code == 403
    assert client.get(url).status_code == 401


def test_lookup_by_code(client, make_service, make_worker, booking_payload):
    service = make_service()
    worker = make_worker()
    code = create_booking(client, booking_payload(service, worker)).json()["data"]["bookingCode"]

    response = client.get(f"/api/bookings/code/{code.lower()}", params={"email": "GRACE@example.com"})
    assert response.status_code == 200
    assert response.json()["data"]["bookingCode"] == code

    mismatch = client.get(f"/api/bookings/code/{code}", params={"email": "other@example.com"})
    assert mismatch.status_code == 403
    assert mismatch.json()["message"] == "Email does not match booking records"

    assert client.get(f"/api/bookings/code/{code}").status_code == 400
    assert client.get("/api/bookings/code/HHNOPE", params={"email": "grace@example.com"}).status_code == 404


def test_my_bookings_and_worker_bookings(
    client, make_service, make_worker, make_user, booking_payload, auth_headers
):
    service = make_service()
    worker = make_worker()
    customer = make_user()
    for start, end in (("08:00", "09:00"), ("09:00", "10:00"), ("10:00", "11:00")):
        payload = booking_payload(service, worker, start=start, end=end, guest=False)
        assert create_booking(client, payload, auth_headers(customer)).status_code == 201

    response = client.get("/api/bookings/my-bookings", params={"limit": 2}, headers=auth_headers(customer))
    assert response.status_code == 200
    body = response.json()
    assert len(body["data"]) == 2
    assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "pages": 2}

    response = client.get("/api/bookings/worker-bookings", headers=auth_headers(worker.user))
    assert response.status_code == 200
    assert response.json()["pagination"]["total"] == 3

    assert client.get("/api/bookings/worker-bookings", headers=auth_headers(customer)).status_code == 403


def test_cancellation_records_actor_and_default_reason(
    client, make_service, make_worker, make_user, booking_payload, auth_headers, db_session
):
    worker = make_worker()
    customer = make_user()
    booking = create_booking(
        client, booking_payload(make_service(), worker, guest=False), auth_headers(customer)
    ).json()["data"]

    response = client.put(
        f"/api/bookings/{booking['id']}/status", json={"status": "cancelled"}, headers=auth_headers(customer)
    )
    assert response.status_code == 200
    cancellation = response.json()["data"]["cancellation"]
    assert cancellation["reason"] == "No reason provided"
    assert cancellation["cancelledBy"] == customer.id
    assert cancellation["cancelledAt"] is not None

    db_session.expire_all()
    stored = db_session.get(Booking, booking["id"])
    assert stored.cancelled_by == customer.id
    assert stored.cancelled_at is not None
    refreshed = db_session.get(Worker, worker.id)
    assert refreshed.cancelled_bookings == 1
    assert refreshed.completed_bookings == 0


def test_deleted_service_cannot_be_booked(
    client, make_service, make_worker, make_user, booking_payload, auth_headers
):
    service = make_service()
    worker = make_worker()
    admin_headers = auth_headers(make_user(role="admin"))
    first = create_booking(client, booking_payload(service, worker)).json()["data"]
    client.put(
        f"/api/bookings/{first['id']}/status", json={"status": "cancelled"}, headers=auth_headers(worker.user)
    )

    deleted = client.delete(f"/api/admin/services/{service.id}", headers=admin_headers)
    assert deleted.json()["message"] == "Service deactivated because past bookings reference it"

    response = create_booking(client, booking_payload(service, worker))
    assert response.status_code == 404
    assert response.json()["message"] == "Service not found"

    hidden = make_service(is_active=False)
    assert create_booking(client, booking_payload(hidden, worker)).status_code == 404


def test_worker_not_accepting_bookings(
    client, make_service, make_worker, booking_payload, db_session, sent_notifications
):
    service = make_service()

    paused = make_worker()
    paused.is_available = False
    db_session.commit()
    response = create_booking(client, booking_payload(service, paused))
    assert response.status_code == 404
    assert response.json()["message"] == "Worker is not accepting bookings"

    suspended = make_worker()
    suspended.user.is_active = False
    db_session.commit()
    response = create_booking(client, booking_payload(service, suspended))
    assert response.status_code == 404
    assert response.json()["message"] == "Worker is not accepting bookings"

    assert sent_notifications == []
    assert db_session.query(Booking).count() == 0
