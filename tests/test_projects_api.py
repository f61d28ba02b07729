import pytest

from aaraa_erp.models import BOQItem, Project


def _wizard(response):
    assert response.status_code == 200, response.get_json()
    return response.get_json()["wizard"]


def _go_to(client, step):
    state = _wizard(client.get("/api/projects/wizard"))
    while state["step"] < step:
        state = _wizard(client.post("/api/projects/wizard/continue"))
    return state


@pytest.fixture
def admin(client, login):
    login("AI1002")
    return client


def test_user_role_cannot_open_wizard(client, login):
    login("AI1003")
    assert client.get("/api/projects/wizard").status_code == 403


def test_wizard_starts_with_defaults(admin):
    state = _wizard(admin.get("/api/projects/wizard"))
    assert state["step"] == 1
    assert state["step_title"] == "Identity"
    assert state["fields"]["project_code"] == "AI"
    assert state["fields"]["gst_applicable"] is True
    assert state["boq_scope"] == []


def test_fields_persist_between_requests(admin):
    admin.post("/api/projects/wizard/fields", json={"fields": {"project_code": "AI-77", "project_name": "Depot"}})
    admin.post("/api/projects/wizard/fields", json={"name": "city", "value": "Chennai"})

    state = _wizard(admin.get("/api/projects/wizard"))
    assert state["fields"]["project_code"] == "AI-77"
    assert state["fields"]["city"] == "Chennai"


def test_unknown_field_is_400(admin):
    response = admin.post("/api/projects/wizard/fields", json={"name": "bogus", "value": "x"})
    assert response.status_code == 400


def test_boq_scope_only_on_step_five(admin):
    item = BOQItem.query.first()
    assert admin.post("/api/projects/wizard/boq", json={"id": item.id}).status_code == 400

    _go_to(admin, 5)
    state = _wizard(admin.post("/api/projects/wizard/boq", json={"id": item.id}))
    state = _wizard(admin.post("/api/projects/wizard/boq", json={"id": item.id}))
    assert [line["id"] for line in state["boq_scope"]] == [item.id]
    assert state["boq_scope"][0]["quantity"] == 0

    state = _wizard(admin.delete(f"/api/projects/wizard/boq/{item.id}"))
    assert state["boq_scope"] == []
    state = _wizard(admin.delete("/api/projects/wizard/boq/not-there"))
    assert state["boq_scope"] == []


def test_unknown_master_item_is_404(admin):
    _go_to(admin, 5)
    assert admin.post("/api/projects/wizard/boq", json={"id": "nope"}).status_code == 404


def test_new_boq_item_is_saved_and_selected(admin):
    _go_to(admin, 5)
    state = _wizard(admin.post("/api/projects/wizard/boq/new", json={"item_name": "Anti-termite", "unit": "Sqm"}))

    created = BOQItem.query.filter_by(item_name="Anti-termite").one()
    assert [line["id"] for line in state["boq_scope"]] == [created.id]


def test_submit_with_wrong_prefix_stays_on_review(admin):
    admin.post("/api/projects/wizard/fields", json={"fields": {"project_code": "XY-100", "project_name": "Depot"}})
    _go_to(admin, 6)

    response = admin.post("/api/projects/wizard/submit")
    assert response.status_code == 400
    assert response.get_json()["error"] == "Project Code must start with 'AI'."
    assert Project.query.count() == 0

    state = _wizard(admin.get("/api/projects/wizard"))
    assert state["step"] == 6
    assert state["submitted_code"] is None
    assert state["fields"]["project_name"] == "Depot"


def test_submit_without_name_is_refused(admin):
    _go_to(admin, 6)
    response = admin.post("/api/projects/wizard/submit")
    assert response.status_code == 400
    assert response.get_json()["error"] == "Project Code and Name are mandatory."


def test_submit_creates_project_and_summary(admin):
    admin.post("/api/projects/wizard/fields", json={"fields": {
        "project_code": "AI-2041",
        "project_name": "Metro Depot",
        "agreement_value": "2500000",
        "project_manager_id": "AI1015",
        "site_engineers_ids": ["AI1003", "AI1027"],
    }})
    _go_to(admin, 5)
    for item in BOQItem.query.order_by(BOQItem.item_name).all():
        admin.post("/api/projects/wizard/boq", json={"id": item.id})
    admin.post("/api/projects/wizard/continue")

    state = _wizard(admin.post("/api/projects/wizard/submit"))
    assert state["submitted_code"] == "AI-2041"
    assert state["step_title"] == "Submitted"

    project = Project.query.filter_by(project_code="AI-2041").one()
    assert project.agreement_value == 2500000.0
    assert project.site_engineers_ids == ["AI1003", "AI1027"]
    assert project.created_by == "AI1002"
    assert len(project.boq_json) == 8

    summary = admin.get("/api/projects/wizard/summary").get_json()
    assert summary["project"]["project_code"] == "AI-2041"
    assert summary["project_manager_name"] == "Vinoth Kumar R"
    assert len(summary["boq_preview"]) == 6
    assert summary["boq_remaining"] == 2

    assert admin.post("/api/projects/wizard/continue").status_code == 400
    state = _wizard(admin.post("/api/projects/wizard/reset"))
    assert state["step"] == 1


def test_duplicate_project_code_keeps_state(admin):
    def submit(name):
        admin.post("/api/projects/wizard/reset")
        admin.post("/api/projects/wizard/fields", json={"fields": {"project_code": "AI-9", "project_name": name}})
        _go_to(admin, 6)
        return admin.post("/api/projects/wizard/submit")

    assert submit("First").status_code == 200
    response = submit("Second")
    assert response.status_code == 400
    assert "already exists" in response.get_json()["error"]

    state = _wizard(admin.get("/api/projects/wizard"))
    assert state["fields"]["project_name"] == "Second"
    assert state["step"] == 6


def test_summary_before_submission_is_400(admin):
    assert admin.get("/api/projects/wizard/summary").status_code == 400


def test_master_data_endpoints(admin):
    units = admin.get("/api/boq/units").get_json()["items"]
    assert "MT" in [u["unit_name"] for u in units]

    assert admin.post("/api/boq/units", json={"unit_name": "Bag"}).status_code == 201
    assert admin.post("/api/boq/units", json={"unit_name": "Bag"}).status_code == 400

    response = admin.post("/api/boq/items", json={"item_name": "Door Frame", "unit": "Nos"})
    assert response.status_code == 201
    names = [i["item_name"] for i in admin.get("/api/boq/items").get_json()["items"]]
    assert "Door Frame" in names

    employees = admin.get("/api/employees").get_json()["items"]
    assert {"id": "AI1015", "name": "Vinoth Kumar R", "designation": "Project Manager"} in employees


def test_projects_list_is_manager_only(client, login):
    login("AI1003")
    assert client.get("/api/projects").status_code == 403
    client.post("/api/auth/logout")

    login("AI1001")
    assert client.get("/api/projects").get_json() == {"items": []}


def test_large_draft_stays_out_of_cookie(admin):
    summary = "Civil, structural and MEP works for the depot. " * 100
    admin.post("/api/projects/wizard/fields", json={"name": "scope_summary", "value": summary})
    response = admin.get("/api/projects/wizard")

    for header in response.headers.getlist("Set-Cookie"):
        assert len(header) < 4093
        assert "Civil" not in header
    assert _wizard(response)["fields"]["scope_summary"] == summary


def test_logout_discards_draft(client, login):
    login("AI1002")
    client.post("/api/projects/wizard/fields", json={"name": "project_name", "value": "Depot"})
    client.post("/api/auth/logout")

    login("AI1002")
    state = _wizard(client.get("/api/projects/wizard"))
    assert state["fields"]["project_name"] == ""


def test_drafts_are_per_employee(client, login):
    login("AI1002")
    client.post("/api/projects/wizard/fields", json={"name": "project_name", "value": "Depot"})
    client.post("/api/auth/logout")

    login("AI1001")
    assert _wizard(client.get("/api/projects/wizard"))["fields"]["project_name"] == ""


def test_unknown_team_member_is_reported(admin):
    admin.post("/api/projects/wizard/fields", json={"fields": {
        "project_code": "AI-3001",
        "project_name": "Ring Road",
        "project_manager_id": "AI9999",
    }})
    _go_to(admin, 6)

    response = admin.post("/api/projects/wizard/submit")
    assert response.status_code == 400
    error = response.get_json()["error"]
    assert "AI9999" in error
    assert "already exists" not in error
    assert Project.query.count() == 0
    assert _wizard(admin.get("/api/projects/wizard"))["step"] == 6
