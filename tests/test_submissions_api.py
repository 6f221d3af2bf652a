"""Tests for the per-service submission endpoint ``POST /api/<service-type>``."""

import pytest


def submit(client, headers, service_type, body):
    return client.post(f"/api/{service_type}", json=body, headers=headers)


def test_new_payment_plan(client, auth_headers, payment_plan):
    response = submit(client, auth_headers, "payment-plan", {"paymentPlanData": dict(payment_plan, userId="u1")})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["id"]
    assert body["message"] == "Payment Plan request submitted successfully"

    existing = client.get("/api/v1/requests/payment-plan", headers=auth_headers).json()
    assert existing["exists"] is True
    assert existing["data"]["id"] == body["id"]
    assert existing["data"]["status"] == "pending"


def test_missing_declaration_returns_field_errors(client, auth_headers):
    body = {"basLodgementData": {"quarter": "Q1", "agreeToDeclaration": False, "userId": "u1"}}
    response = submit(client, auth_headers, "bas-lodgement-copy", body)
    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "message": "Please correct the highlighted fields",
        "fieldErrors": {"agreeToDeclaration": "You must agree to the declaration"},
    }
    existing = client.get("/api/v1/requests/bas-lodgement-copy", headers=auth_headers).json()
    assert existing["exists"] is False


@pytest.mark.parametrize(
    "body",
    [
        None,
        {},
        [],
        "taxReturnData",
        {"taxReturnData": {"year": "2023", "agreeToDeclaration": True}},
        {"taxReturnData": ["u1"]},
        {"wrongKey": {"userId": "u1"}},
    ],
)
def test_missing_data_or_user_id(client, auth_headers, body):
    response = client.post("/api/tax-return-copy", json=body, headers=auth_headers)
    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Missing tax return copy data or user ID"}


def test_user_id_must_match_token(client, auth_headers, payment_plan):
    response = submit(client, auth_headers, "payment-plan", {"paymentPlanData": dict(payment_plan, userId="u2")})
    assert response.status_code == 403
    assert response.json()["success"] is False


def test_unknown_service_type(client, auth_headers):
    response = submit(client, auth_headers, "lawn-mowing", {"data": {"userId": "u1"}})
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Service type lawn-mowing not found"}


@pytest.mark.parametrize("method", ["GET", "PUT", "PATCH", "DELETE"])
def test_only_post_is_allowed(client, auth_headers, method):
    response = client.request(method, "/api/payment-plan", headers=auth_headers)
    assert response.status_code == 405
    assert response.json() == {"success": False, "message": "Method not allowed"}
    assert response.headers["allow"] == "POST"


def test_authentication_required(client, payment_plan):
    response = client.post("/api/payment-plan", json={"paymentPlanData": dict(payment_plan, userId="u1")})
    assert response.status_code == 401


def test_completed_request_is_locked(client, auth_headers, staff_headers, payment_plan):
    body = {"paymentPlanData": dict(payment_plan, userId="u1")}
    request_id = submit(client, auth_headers, "payment-plan", body).json()["id"]
    client.put(
        f"/api/v1/requests/payment-plan/{request_id}/status",
        json={"status": "completed"},
        headers=staff_headers,
    )

    response = submit(client, auth_headers, "payment-plan", body)
    assert response.status_code == 409
    assert response.json() == {
        "success": False,
        "message": "Payment Plan request is completed and can no longer be changed",
    }


def test_rejected_request_can_be_resubmitted(client, auth_headers, staff_headers, payment_plan):
    body = {"paymentPlanData": dict(payment_plan, userId="u1")}
    request_id = submit(client, auth_headers, "payment-plan", body).json()["id"]
    client.put(
        f"/api/v1/requests/payment-plan/{request_id}/status",
        json={"status": "rejected", "notes": "Please confirm the amount"},
        headers=staff_headers,
    )

    response = submit(client, auth_headers, "payment-plan", {"paymentPlanData": dict(payment_plan, amount=650, userId="u1")})
    assert response.status_code == 200
    assert response.json()["id"] == request_id

    record = client.get(f"/api/v1/requests/payment-plan/{request_id}", headers=auth_headers).json()
    assert record["status"] == "pending"
    assert record["payload"]["amount"] == 650


def test_store_failure_answers_500(client, auth_headers, payment_plan, monkeypatch):
    from accounting_portal_api.app.core.document_store import DocumentStore

    def broken(*args, **kwargs):
        raise RuntimeError("store offline")

    monkeypatch.setattr(DocumentStore, "query", broken)
    response = submit(client, auth_headers, "payment-plan", {"paymentPlanData": dict(payment_plan, userId="u1")})
    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Failed to submit payment plan request"}


def test_notification_failure_still_succeeds(client, auth_headers, payment_plan, mailer):
    mailer.fail = True
    response = submit(client, auth_headers, "payment-plan", {"paymentPlanData": dict(payment_plan, userId="u1")})
    assert response.status_code == 200
    assert response.json()["success"] is True
