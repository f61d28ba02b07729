from aaraa_erp.models import AuditLog


def test_own_submissions_only(client, login):
    login("AI1003")
    ids = [item["id"] for item in client.get("/api/submissions").get_json()["items"]]
    assert ids == ["SUB501"]


def test_manual_bill_is_pending(client, login):
    login("AI1003")
    response = client.post("/api/submissions", json={"type": "BILL", "title": "Cement 50 bags", "amount": "18,250.50"})

    assert response.status_code == 201
    submission = response.get_json()["submission"]
    assert submission["status"] == "PENDING"
    assert submission["amount"] == 18250.5
    assert submission["department"] == "Site"
    assert submission["employee_name"] == "Manikandan"
    assert submission["id"].startswith("SUB-")

    audit = AuditLog.query.filter_by(entity_id=submission["id"]).one()
    assert audit.action == "CREATE"


def test_vault_and_system_test_scopes_are_approved(client, login):
    login("AI1001")
    vault = client.post("/api/submissions", json={
        "type": "SITE_PHOTO",
        "title": "Vault Asset",
        "url": "https://storage.googleapis.com/test-bucket/vault/AI1001/1-a.png",
        "scope": "vault",
    }).get_json()["submission"]
    assert vault["status"] == "APPROVED"

    test_card = client.post("/api/submissions", json={
        "title": "GCS Integrator Test: Success",
        "url": "https://storage.googleapis.com/test-bucket/system-tests/AI1001/2-t.png",
        "scope": "system-tests",
    }).get_json()["submission"]
    assert test_card["status"] == "APPROVED"
    assert test_card["department"] == "System/Test"

    items = client.get("/api/vault").get_json()["items"]
    assert {item["id"] for item in items} == {vault["id"], test_card["id"]}


def test_invalid_submission_input(client, login):
    login("AI1003")
    assert client.post("/api/submissions", json={"type": "BILL", "title": ""}).status_code == 400
    assert client.post("/api/submissions", json={"type": "GIFT", "title": "x"}).status_code == 400
    assert client.post("/api/submissions", json={"type": "BILL", "title": "x", "amount": "lots"}).status_code == 400
