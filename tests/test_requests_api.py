"""Tests for the v1 catalog, request and audit endpoints."""


def _submit(client, headers, payment_plan, user_id="u1"):
    body = {"paymentPlanData": dict(payment_plan, userId=user_id)}
    return client.post("/api/payment-plan", json=body, headers=headers).json()["id"]


def test_list_services(client):
    services = client.get("/api/v1/services/").json()
    assert len(services) == 10
    payment_plan = next(s for s in services if s["slug"] == "payment-plan")
    assert payment_plan["bodyKey"] == "paymentPlanData"
    assert payment_plan["requiredFields"] == ["planType", "amount", "agreeToDeclaration"]
    assert payment_plan["displayLabels"]["defaultText"] == "Submit Payment Plan"


def test_get_unknown_service(client):
    assert client.get("/api/v1/services/lawn-mowing").status_code == 404


def test_existing_request_view_before_and_after_submit(client, auth_headers, payment_plan):
    before = client.get("/api/v1/requests/payment-plan", headers=auth_headers).json()
    assert before["exists"] is False
    assert before["display"] == {
        "actionEnabled": True,
        "fieldsEnabled": True,
        "label": "Submit Payment Plan",
    }

    _submit(client, auth_headers, payment_plan)
    after = client.get("/api/v1/requests/payment-plan", headers=auth_headers).json()
    assert after["exists"] is True
    assert after["display"]["label"] == "Update Payment Plan"
    assert after["display"]["actionEnabled"] is True


def test_existing_request_view_when_locked(client, auth_headers, staff_headers, payment_plan):
    request_id = _submit(client, auth_headers, payment_plan)
    client.put(
        f"/api/v1/requests/payment-plan/{request_id}/status",
        json={"status": "in-progress"},
        headers=staff_headers,
    )
    view = client.get("/api/v1/requests/payment-plan", headers=auth_headers).json()
    assert view["data"]["status"] == "in-progress"
    assert view["display"]["actionEnabled"] is False
    assert view["display"]["label"] == "Already Submitted"


def test_existing_request_for_unknown_service(client, auth_headers):
    assert client.get("/api/v1/requests/lawn-mowing", headers=auth_headers).status_code == 404


def test_list_my_requests(client, auth_headers, other_headers, payment_plan):
    _submit(client, auth_headers, payment_plan)
    _submit(client, other_headers, payment_plan, user_id="u2")
    mine = client.get("/api/v1/requests/", headers=auth_headers).json()
    assert len(mine) == 1
    assert mine[0]["serviceName"] == "Payment Plan"
    assert mine[0]["userId"] == "u1"

    assert client.get("/api/v1/requests/", params={"status": "completed"}, headers=auth_headers).json() == []


def test_get_request_of_another_user(client, auth_headers, other_headers, payment_plan):
    request_id = _submit(client, auth_headers, payment_plan)
    assert client.get(f"/api/v1/requests/payment-plan/{request_id}", headers=other_headers).status_code == 403
    assert client.get("/api/v1/requests/payment-plan/missing", headers=auth_headers).status_code == 404


def test_status_update_requires_staff(client, auth_headers, payment_plan):
    request_id = _submit(client, auth_headers, payment_plan)
    response = client.put(
        f"/api/v1/requests/payment-plan/{request_id}/status",
        json={"status": "completed"},
        headers=auth_headers,
    )
    assert response.status_code == 403


def test_status_update_flow(client, auth_headers, staff_headers, payment_plan):
    request_id = _submit(client, auth_headers, payment_plan)
    url = f"/api/v1/requests/payment-plan/{request_id}/status"

    response = client.put(url, json={"status": "completed", "notes": "Lodged with the ATO"}, headers=staff_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "completed"
    assert response.json()["notes"] == "Lodged with the ATO"

    assert client.put(url, json={"status": "pending"}, headers=staff_headers).status_code == 409
    assert client.put(url, json={"status": "archived"}, headers=staff_headers).status_code == 422
    missing = "/api/v1/requests/payment-plan/missing/status"
    assert client.put(missing, json={"status": "completed"}, headers=staff_headers).status_code == 404


def test_audit_logs_are_staff_only(client, auth_headers, staff_headers, payment_plan):
    request_id = _submit(client, auth_headers, payment_plan)
    assert client.get("/api/v1/audit/logs", headers=auth_headers).status_code == 403

    logs = client.get("/api/v1/audit/logs", params={"object_id": request_id}, headers=staff_headers).json()
    assert [log["action"] for log in logs] == ["submit"]
    assert logs[0]["userId"] == "u1"


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_list_my_requests_search(client, auth_headers, payment_plan):
    _submit(client, auth_headers, payment_plan)
    found = client.get("/api/v1/requests/", params={"q": "management"}, headers=auth_headers).json()
    assert [r["serviceType"] for r in found] == ["payment-plan"]
    assert client.get("/api/v1/requests/", params={"q": "trust"}, headers=auth_headers).json() == []
