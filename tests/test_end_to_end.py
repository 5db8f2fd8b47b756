from handyhub.notifications import NotificationKind


def sign_up(client, sent_notifications, name, email):
    response = client.post(
        "/api/auth/register",
        json={"name": name, "email": email, "password": "Secret123", "phone": "+15552223333"},
    )
    assert response.status_code == 201
    otp = [n for n in sent_notifications if n.kind == NotificationKind.VERIFICATION][-1].context["otp"]
    response = client.post("/api/auth/verify-email", json={"email": email, "otp": otp})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['data']['token']}"}


def test_marketplace_journey(client, sent_notifications, make_user, make_service, auth_headers, booking_date):
    admin_headers = auth_headers(make_user(role="admin"))
    service = make_service(name="Leak Repair", category="plumbing")

    # A tradesperson signs up and applies
    worker_headers = sign_up(client, sent_notifications, "Pat Plumber", "pat@example.com")
    response = client.put(
        "/api/workers/application",
        json={
            "address": "3 Pipe Row, Springfield",
            "services": ["plumbing"],
            "experience": "10+",
            "hourlyRate": 50,
            "availability": [f"{booking_date.strftime('%A')} Morning"],
            "hasConvictions": False,
        },
        headers=worker_headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["firstName"] == "Pat"

    upload = client.post(
        "/api/workers/application/documents",
        data={"document_type": "id_document"},
        files={"file": ("licence.jpg", b"\xff\xd8\xff", "image/jpeg")},
        headers=worker_headers,
    )
    assert upload.status_code == 201
    worker_id = client.post("/api/workers/application/submit", headers=worker_headers).json()["data"]["id"]

    assert client.get(f"/api/workers/{worker_id}").status_code == 404
    assert client.put(f"/api/admin/workers/{worker_id}/approve", headers=admin_headers).status_code == 200

    listed = client.get("/api/workers/available", params={"service": "plumbing"}).json()["data"]
    assert [w["id"] for w in listed] == [worker_id]

    # A customer signs up and books
    customer_headers = sign_up(client, sent_notifications, "Casey Customer", "casey@example.com")
    response = client.post(
        "/api/bookings",
        json={
            "serviceId": service.id,
            "workerId": worker_id,
            "scheduledDate": booking_date.isoformat(),
            "scheduledTime": {"start": "08:30", "end": "10:00"},
            "location": {"address": "10 Drip Lane, Springfield", "coordinates": [-0.12, 51.5]},
        },
        headers=customer_headers,
    )
    assert response.status_code == 201, response.json()
    booking = response.json()["data"]
    assert booking["pricing"]["totalAmount"] == 75
    assert booking["customer"]["type"] == "registered"

    status_url = f"/api/bookings/{booking['id']}/status"
    for status in ("confirmed", "in-progress", "completed"):
        response = client.put(status_url, json={"status": status}, headers=worker_headers)
        assert response.status_code == 200
        assert response.json()["data"]["status"] == status

    # Terminal states stay terminal
    assert client.put(status_url, json={"status": "cancelled"}, headers=worker_headers).status_code == 400

    review = client.post(
        f"/api/bookings/{booking['id']}/review",
        json={"rating": 4, "comment": "Fixed it fast"},
        headers=customer_headers,
    )
    assert review.status_code == 201

    profile = client.get(f"/api/workers/{worker_id}").json()["data"]
    assert profile["worker"]["rating"] == {"average": 4.0, "count": 1}
    assert profile["worker"]["stats"]["completedBookings"] == 1
    assert profile["recentReviews"][0]["comment"] == "Fixed it fast"
    assert profile["recentReviews"][0]["customerName"] == "Casey Customer"

    dashboard = client.get("/api/workers/me/dashboard", headers=worker_headers).json()["data"]
    assert dashboard["stats"]["totalEarnings"] == 75
    assert dashboard["stats"]["completionRate"] == 100

    statuses = [entry["status"] for entry in client.get(f"/api/bookings/{booking['id']}", headers=customer_headers).json()["data"]["timeline"]]
    assert statuses == ["pending", "confirmed", "in-progress", "completed"]


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["environment"]


def test_unknown_route(client):
    response = client.get("/api/nowhere")
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Route not found"}
