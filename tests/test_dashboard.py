from aaraa_erp import assistant


def test_dashboard_falls_back_without_assistant(client, login):
    login("AI1003")
    body = client.get("/api/dashboard").get_json()

    assert body["employee"]["id"] == "AI1003"
    assert body["dashboard"] == "Site Execution"
    assert body["insight"] == "Ready to assist you with your daily operations."
    assert body["counters"] == {"my_submissions": 1, "my_pending": 1}


def test_manager_dashboard_counts_queue(client, login):
    login("AI1002")
    counters = client.get("/api/dashboard").get_json()["counters"]
    assert counters["pending_approvals"] == 3
    assert counters["projects"] == 0


def test_dashboard_uses_assistant_insight(client, login, monkeypatch):
    prompts = []

    def fake_complete(messages):
        prompts.append(messages)
        return "Two bills await approval."

    monkeypatch.setattr(assistant, "_complete", fake_complete)
    login("AI1002")

    assert client.get("/api/dashboard").get_json()["insight"] == "Two bills await approval."
    assert "User Role: ADMIN" in prompts[0][0]["content"]


def test_chat_unavailable_is_503(client, login):
    login("AI1003")
    response = client.post("/api/assistant/chat", json={"message": "Status of Tower 4?"})
    assert response.status_code == 503
    assert response.get_json() == {"error": "Service unavailable. Please try again."}


def test_chat_sends_history_and_system_instruction(client, login, monkeypatch):
    sent = []

    def fake_complete(messages):
        sent.extend(messages)
        return "Tower 4 inspection is pending review."

    monkeypatch.setattr(assistant, "_complete", fake_complete)
    login("AI1003")
    response = client.post("/api/assistant/chat", json={
        "message": "Status of Tower 4?",
        "history": [{"role": "user", "text": "Hi"}, {"role": "ai", "text": "Hello Manikandan"}],
    })

    assert response.get_json() == {"reply": "Tower 4 inspection is pending review."}
    assert [m["role"] for m in sent] == ["system", "user", "assistant", "user"]
    assert "Manikandan" in sent[0]["content"]


def test_chat_requires_message(client, login):
    login("AI1003")
    assert client.post("/api/assistant/chat", json={"message": " "}).status_code == 400
    assert client.post("/api/assistant/chat", json={"message": "x", "history": "bad"}).status_code == 400


def test_read_all_notifications(client, login):
    login("AI1003")
    client.post("/api/submissions", json={"type": "BILL", "title": "Cement", "amount": "4,500"})
    assert client.get("/api/notifications").get_json()["unread"] == 2

    assert client.post("/api/notifications/read-all").get_json()["unread"] == 0
    assert client.post("/api/notifications/999999/read").status_code == 404


def test_spa_fallback_serves_index(client):
    for path in ("/", "/approvals", "/project-creation/step/3"):
        response = client.get(path)
        assert response.status_code == 200
        assert b'<div id="root">' in response.data


def test_unknown_api_path_is_json_404(client):
    response = client.get("/api/does-not-exist")
    assert response.status_code == 404
    assert "error" in response.get_json()


def test_manager_counter_matches_queue(client, login):
    login("AI1002")
    client.post("/api/approvals/SUB503/escalate")

    counters = client.get("/api/dashboard").get_json()["counters"]
    queue = client.get("/api/approvals").get_json()["items"]
    assert counters["pending_approvals"] == len(queue) == 3


def test_feed_keeps_newest_entries(client, login):
    login("AI1003")
    for n in range(25):
        client.post("/api/submissions", json={"type": "BILL", "title": f"Bill {n}"})

    feed = client.get("/api/notifications").get_json()
    assert len(feed["items"]) == 20
    assert feed["items"][0]["message"] == "Bill 24 is PENDING."
