import pytest

from handyhub.exceptions import ValidationError
from handyhub.models import User, Worker
from handyhub.notifications import NotificationKind

APPLICATION = {
    "firstName": "Ada",
    "lastName": "Fixer",
    "phone": "+15553334444",
    "address": "9 Workshop Lane, Springfield",
    "services": ["plumbing", "handyman"],
    "experience": "5-10",
    "hourlyRate": 45,
    "availability": ["Monday Morning", "Monday Afternoon"],
    "bio": "Twenty years under sinks",
    "hasConvictions": False,
}


def upload(client, headers, document_type="id_document", filename="passport.pdf", content_type="application/pdf"):
    return client.post(
        "/api/workers/application/documents",
        data={"document_type": document_type},
        files={"file": (filename, b"%PDF-1.4 test", content_type)},
        headers=headers,
    )


def test_pending_requires_complete_application(db_session, make_user):
    user = make_user()
    worker = Worker(user_id=user.id, first_name="Only", application_status="incomplete")
    db_session.add(worker)
    db_session.commit()

    worker.application_status = "pending"
    with pytest.raises(ValidationError) as exc_info:
        db_session.commit()
    db_session.rollback()

    message = exc_info.value.message
    for field in ("services", "availability", "id_document"):
        assert field in message


def test_pending_insert_is_guarded_too(db_session, make_user):
    user = make_user()
    db_session.add(
        Worker(
            user_id=user.id,
            first_name="A",
            last_name="B",
            email="a@example.com",
            phone="+15550000000",
            address="Somewhere 123",
            services=["cleaning"],
            availability=["Monday Morning"],
            application_status="pending",
        )
    )
    with pytest.raises(ValidationError) as exc_info:
        db_session.commit()
    db_session.rollback()
    assert "id_document" in exc_info.value.message


def test_application_flow(client, make_user, auth_headers, sent_notifications, r2_client, db_session):
    applicant = make_user(name="Ada Fixer")
    admin = make_user(role="admin")
    headers = auth_headers(applicant)

    assert client.get("/api/workers/application", headers=headers).status_code == 404

    response = client.put("/api/workers/application", json=APPLICATION, headers=headers)
    assert response.status_code == 200
    draft = response.json()["data"]
    assert draft["applicationStatus"] == "incomplete"
    assert draft["email"] == applicant.email

    response = client.post("/api/workers/application/submit", headers=headers)
    assert response.status_code == 400
    assert response.json()["message"] == "Government ID document is required"

    response = upload(client, headers)
    assert response.status_code == 201
    id_document = response.json()["data"]["documents"]["idDocument"]
    assert id_document["url"].startswith("https://cdn.test/handyhub/worker-documents/")
    assert len(r2_client.objects) == 1

    response = client.post("/api/workers/application/submit", headers=headers)
    assert response.status_code == 200
    submitted = response.json()["data"]
    assert submitted["applicationStatus"] == "pending"
    assert submitted["submittedAt"] is not None
    assert sent_notifications[-1].kind == NotificationKind.WORKER_APPLICATION_RECEIVED

    again = client.post("/api/workers/application/submit", headers=headers)
    assert again.status_code == 409
    assert again.json()["message"] == "Worker application already pending"

    frozen = client.put("/api/workers/application", json={"bio": "changed"}, headers=headers)
    assert frozen.status_code == 400

    response = client.put(f"/api/admin/workers/{submitted['id']}/approve", headers=auth_headers(admin))
    assert response.status_code == 200
    approved = response.json()["data"]
    assert approved["applicationStatus"] == "approved"
    assert approved["isVerified"] is True
    assert approved["approvedBy"] == admin.id
    assert sent_notifications[-1].kind == NotificationKind.WORKER_APPROVED

    db_session.expire_all()
    assert db_session.get(User, applicant.id).role == "worker"

    decided = client.put(f"/api/admin/workers/{submitted['id']}/reject", headers=auth_headers(admin))
    assert decided.status_code == 400
    assert decided.json()["message"] == "Application is already approved"

    profile = client.get("/api/workers/me", headers=headers)
    assert profile.status_code == 200
    assert profile.json()["data"]["services"] == ["plumbing", "handyman"]


def test_rejected_application_can_be_resubmitted(
    client, make_worker, make_user, auth_headers, sent_notifications
):
    applicant = make_user()
    admin = make_user(role="admin")
    worker = make_worker(user=applicant, status="pending")

    response = client.put(
        f"/api/admin/workers/{worker.id}/status",
        json={"status": "rejected", "rejectionReason": "ID is blurry"},
        headers=auth_headers(admin),
    )
    assert response.status_code == 200
    assert response.json()["data"]["rejectionReason"] == "ID is blurry"
    assert sent_notifications[-1].kind == NotificationKind.WORKER_REJECTED
    assert sent_notifications[-1].context["reason"] == "ID is blurry"

    headers = auth_headers(applicant)
    edited = client.put("/api/workers/application", json={"bio": "Sharper photo attached"}, headers=headers)
    assert edited.status_code == 200
    assert edited.json()["data"]["applicationStatus"] == "incomplete"

    resubmitted = client.post("/api/workers/application/submit", headers=headers)
    assert resubmitted.status_code == 200
    assert resubmitted.json()["data"]["applicationStatus"] == "pending"
    assert resubmitted.json()["data"]["rejectionReason"] is None


def test_replacing_id_document_deletes_previous(client, make_user, auth_headers, r2_client):
    headers = auth_headers(make_user())
    first = upload(client, headers, filename="front.png", content_type="image/png").json()["data"]
    first_key = next(iter(r2_client.objects))

    second = upload(client, headers, filename="scan.pdf").json()["data"]
    assert r2_client.deleted == [first_key]
    assert first_key not in r2_client.objects
    assert first["documents"]["idDocument"]["url"] != second["documents"]["idDocument"]["url"]
    assert second["documents"]["idDocument"]["originalName"] == "scan.pdf"


def test_certifications_append(client, make_user, auth_headers):
    headers = auth_headers(make_user())
    upload(client, headers, document_type="certification", filename="gas-safe.pdf")
    response = client.post(
        "/api/workers/application/documents",
        data={"document_type": "certification", "name": "Electrical Level 3"},
        files={"file": ("level3.jpg", b"\xff\xd8\xff", "image/jpeg")},
        headers=headers,
    )
    assert response.status_code == 201
    certifications = response.json()["data"]["documents"]["certifications"]
    assert [c["name"] for c in certifications] == ["gas-safe.pdf", "Electrical Level 3"]


def test_upload_rejects_bad_files(client, make_user, auth_headers, r2_client):
    headers = auth_headers(make_user())
    response = upload(client, headers, filename="notes.txt", content_type="text/plain")
    assert response.status_code == 400
    assert response.json()["message"] == "Only JPEG, PNG, and PDF files are allowed"

    response = upload(client, headers, filename="photo.gif", content_type="image/png")
    assert response.status_code == 400
    assert r2_client.objects == {}


def test_application_validation(client, make_user, auth_headers):
    headers = auth_headers(make_user())
    bad = dict(APPLICATION, services=["juggling"], hourlyRate=500)
    response = client.put("/api/workers/application", json=bad, headers=headers)
    assert response.status_code == 400
    fields = {e["field"] for e in response.json()["errors"]}
    assert {"services", "hourlyRate"} <= fields

    convictions = dict(APPLICATION, hasConvictions=True)
    assert client.put("/api/workers/application", json=convictions, headers=headers).status_code == 400


def test_available_workers_and_public_profile(client, make_worker):
    top = make_worker(services=["plumbing"])
    other = make_worker(services=["cleaning"])
    make_worker(status="pending")

    response = client.get("/api/workers/available", params={"service": "plumbing"})
    assert response.status_code == 200
    assert [w["id"] for w in response.json()["data"]] == [top.id]

    response = client.get("/api/workers/available")
    assert {w["id"] for w in response.json()["data"]} == {top.id, other.id}

    response = client.get(f"/api/workers/{top.id}")
    assert response.status_code == 200
    public = response.json()["data"]["worker"]
    assert "documents" not in public
    assert "backgroundCheck" not in public
    assert response.json()["data"]["recentReviews"] == []


def test_worker_dashboard(client, make_worker, make_service, booking_payload, auth_headers):
    worker = make_worker()
    client.post("/api/bookings", json=booking_payload(make_service(), worker))

    response = client.get("/api/workers/me/dashboard", headers=auth_headers(worker.user))
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["stats"]["totalBookings"] == 1
    assert data["stats"]["monthlyBookings"] == 1
    assert data["stats"]["completionRate"] == 0
    assert len(data["recentBookings"]) == 1


def test_update_worker_profile(client, make_worker, auth_headers):
    worker = make_worker()
    response = client.put(
        "/api/workers/me",
        json={"hourlyRate": 75, "isAvailable": False},
        headers=auth_headers(worker.user),
    )
    assert response.status_code == 200
    assert response.json()["data"]["hourlyRate"] == 75
    assert response.json()["data"]["isAvailable"] is False


def test_failed_id_replacement_drops_stale_reference(
    client, make_user, auth_headers, r2_client, db_session
):
    applicant = make_user()
    headers = auth_headers(applicant)
    client.put("/api/workers/application", json=APPLICATION, headers=headers)
    assert upload(client, headers).status_code == 201
    old_key = next(iter(r2_client.objects))

    r2_client.fail_uploads = True
    response = upload(client, headers, filename="new-id.pdf")
    assert response.status_code == 502
    assert r2_client.deleted == [old_key]

    db_session.expire_all()
    worker = db_session.query(Worker).filter(Worker.user_id == applicant.id).one()
    assert worker.id_document_url is None
    assert worker.id_document_public_id is None

    response = client.post("/api/workers/application/submit", headers=headers)
    assert response.status_code == 400
    assert response.json()["message"] == "Government ID document is required"

    r2_client.fail_uploads = False
    assert upload(client, headers, filename="new-id.pdf").status_code == 201
    assert client.post("/api/workers/application/submit", headers=headers).status_code == 200
