import json

from conftest import OTHER_TOKEN, OWNER_TOKEN, PROJECT_ID, bearer
from src.pv_review.domain.exceptions import GatewayRateLimitError
from src.pv_review.domain.models.chat import ChatCompletion


def test_analyze_compliance_returns_task_id(api_client) -> None:
    client, stubs = api_client

    response = client.post(
        "/functions/analyze-compliance",
        json={"projectId": PROJECT_ID, "projectFiles": []},
        headers=bearer(OWNER_TOKEN),
    )

    assert response.status_code == 202
    task_id = response.json()["taskId"]
    assert stubs.task_manager.enqueued_tasks[0].id == task_id


def test_task_can_be_polled_until_completed(api_client) -> None:
    client, stubs = api_client
    task_id = client.post(
        "/functions/analyze-compliance",
        json={"projectId": PROJECT_ID},
        headers=bearer(OWNER_TOKEN),
    ).json()["taskId"]

    pending = client.get(f"/tasks/{task_id}", headers=bearer(OWNER_TOKEN))
    assert pending.status_code == 200
    assert pending.json() == {"status": "pending", "progress": 0, "result": None, "errorMessage": None}

    task = stubs.tasks.tasks[task_id]
    task.status = task.status.advance(40).complete({"compliancePercentage": 90})

    done = client.get(f"/tasks/{task_id}", headers=bearer(OWNER_TOKEN)).json()
    assert done["status"] == "completed"
    assert done["progress"] == 100
    assert done["result"] == {"compliancePercentage": 90}
    assert done["errorMessage"] is None


def test_extract_data_returns_immediate_result(api_client) -> None:
    client, stubs = api_client
    stubs.chat.answers.append(
        ChatCompletion(model="stub-model", tool_arguments=json.dumps({"layers": ["PV"]}))
    )

    response = client.post(
        "/functions/extract-data", json={"projectId": PROJECT_ID}, headers=bearer(OWNER_TOKEN)
    )

    assert response.status_code == 200
    assert response.json()["immediateResult"]["extractedData"] == {"layers": ["PV"]}


def test_failed_precondition_returns_error_message(api_client) -> None:
    client, stubs = api_client
    stubs.documents.standards = []

    response = client.post(
        "/functions/analyze-compliance", json={"projectId": PROJECT_ID}, headers=bearer(OWNER_TOKEN)
    )

    assert response.status_code == 400
    assert response.json()["errorMessage"].startswith("No standards found in library")
    assert stubs.tasks.tasks == {}


def test_missing_project_id_is_a_bad_request(api_client) -> None:
    client, _ = api_client

    response = client.post("/functions/analyze-compliance", headers=bearer(OWNER_TOKEN))

    assert response.status_code == 400
    assert response.json() == {"errorMessage": "Missing projectId"}


def test_authentication_and_ownership_errors(api_client) -> None:
    client, _ = api_client
    body = {"projectId": PROJECT_ID}

    missing = client.post("/functions/analyze-compliance", json=body)
    invalid = client.post("/functions/analyze-compliance", json=body, headers=bearer("bogus"))
    foreign = client.post("/functions/analyze-compliance", json=body, headers=bearer(OTHER_TOKEN))
    unknown = client.post(
        "/functions/analyze-compliance", json={"projectId": "nope"}, headers=bearer(OWNER_TOKEN)
    )

    assert missing.status_code == 401
    assert missing.json() == {"errorMessage": "Missing authorization header"}
    assert invalid.status_code == 401
    assert foreign.status_code == 403
    assert unknown.status_code == 404
    assert unknown.json() == {"errorMessage": "Project not found"}


def test_unknown_function_is_not_found(api_client) -> None:
    client, _ = api_client

    response = client.post("/functions/compute-pi", json={}, headers=bearer(OWNER_TOKEN))

    assert response.status_code == 404


def test_rate_limit_is_passed_through(api_client, monkeypatch) -> None:
    client, stubs = api_client

    async def rate_limited(*args, **kwargs):
        raise GatewayRateLimitError()

    monkeypatch.setattr(stubs.chat, "complete", rate_limited)

    response = client.post(
        "/functions/extract-data", json={"projectId": PROJECT_ID}, headers=bearer(OWNER_TOKEN)
    )

    assert response.status_code == 429
    assert response.json() == {"errorMessage": "Rate limit exceeded. Please try again later."}


def test_task_of_another_user_is_forbidden(api_client) -> None:
    client, _ = api_client
    task_id = client.post(
        "/functions/analyze-compliance", json={"projectId": PROJECT_ID}, headers=bearer(OWNER_TOKEN)
    ).json()["taskId"]

    assert client.get(f"/tasks/{task_id}", headers=bearer(OTHER_TOKEN)).status_code == 403
    assert client.get("/tasks/missing", headers=bearer(OWNER_TOKEN)).status_code == 404
    assert client.get(f"/tasks/{task_id}").status_code == 401
