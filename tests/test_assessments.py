import pytest

from growthtracker.services import assessment_service
from growthtracker.services.assessment_service import AssessmentError, coerce_output


def test_create_assessment_persists_result(client, make_user, monkeypatch):
    headers, user = make_user()
    seen = {}

    def fake_generate(responses):
        seen["responses"] = responses
        return {"growthScore": 82, "recommendations": "Sleep more.", "analysis": "Solid."}

    monkeypatch.setattr(assessment_service, "generate_assessment", fake_generate)

    r = client.post("/api/ai-assessments", headers=headers,
                    json={"responses": {"What went well?": "Shipped it"}})
    assert r.status_code == 201
    body = r.json()
    assert body["growthScore"] == 82
    assert body["userId"] == user["id"]
    assert seen["responses"] == {"What went well?": "Shipped it"}

    latest = client.get("/api/ai-assessments/latest", headers=headers).json()
    assert latest["id"] == body["id"]
    assert len(client.get("/api/ai-assessments", headers=headers).json()) == 1


def test_latest_is_null_when_none(client, make_user):
    headers, _ = make_user()
    r = client.get("/api/ai-assessments/latest", headers=headers)
    assert r.status_code == 200
    assert r.json() is None


@pytest.mark.parametrize("body", [{}, {"responses": None}, {"responses": "text"}, {"responses": {}}])
def test_create_assessment_requires_responses(client, make_user, body):
    headers, _ = make_user()
    assert client.post("/api/ai-assessments", headers=headers, json=body).status_code == 400


def test_upstream_failure_is_502(client, make_user, monkeypatch):
    headers, _ = make_user()

    def boom(responses):
        raise AssessmentError("Failed to generate assessment. Please try again later.")

    monkeypatch.setattr(assessment_service, "generate_assessment", boom)
    r = client.post("/api/ai-assessments", headers=headers, json={"responses": {"q": "a"}})
    assert r.status_code == 502
    assert client.get("/api/ai-assessments", headers=headers).json() == []


def test_missing_api_key_raises():
    with pytest.raises(AssessmentError):
        assessment_service.generate_assessment({"q": "a"}, api_key="")


def test_coerce_output_clamps_and_falls_back():
    assert coerce_output('{"growthScore": 140, "recommendations": "r", "analysis": "a"}')["growthScore"] == 100
    assert coerce_output('{"growthScore": -3}')["growthScore"] == 0

    out = coerce_output("Just keep going!")
    assert out["growthScore"] == 70
    assert out["recommendations"] == "Just keep going!"


def test_build_prompt_lists_every_answer():
    prompt = assessment_service.build_prompt({"Q1": "A1", "Q2": "A2"})
    assert "Q1: A1\nQ2: A2" in prompt
    assert '"growthScore": number' in prompt


class _Reply:
    status_code = 200
    text = "{}"

    def __init__(self, body):
        self._body = body

    def json(self):
        return self._body


class _Session:
    def __init__(self, body):
        self.body = body

    def post(self, url, **kwargs):
        return _Reply(self.body)


@pytest.mark.parametrize("body", [
    {"choices": None},
    {"choices": ["not a dict"]},
    {"choices": []},
    ["not", "an", "object"],
])
def test_unexpected_upstream_body_raises_assessment_error(monkeypatch, body):
    monkeypatch.setattr(assessment_service, "_get_session", lambda: _Session(body))
    with pytest.raises(AssessmentError):
        assessment_service.generate_assessment({"q": "a"}, api_key="k")


def test_upstream_success_is_coerced(monkeypatch):
    body = {"choices": [{"message": {"content": '{"growthScore": 55, "recommendations": "r"}'}}]}
    monkeypatch.setattr(assessment_service, "_get_session", lambda: _Session(body))
    out = assessment_service.generate_assessment({"q": "a"}, api_key="k")
    assert out["growthScore"] == 55
    assert out["recommendations"] == "r"
