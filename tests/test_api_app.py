from __future__ import annotations

import base64
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from story_spine.api.app import create_app
from story_spine.domain.errors import GenerationNetworkError, GenerationQuotaError
from story_spine.domain.ports import ImageInput


class _FakeGenerator:
    def __init__(self) -> None:
        self.failure: Exception | None = None
        self.calls = 0

    def generate(self, prompt: str, image: ImageInput | None = None) -> str:
        self.calls += 1
        if self.failure is not None:
            raise self.failure
        if image is not None:
            return "Title: Lantern\nPassage:\nA lantern swung in the dark."
        return f"Option 1: Left {self.calls}.\nOption 2: Right {self.calls}."


def _client(tmp_path: Path, generator: _FakeGenerator | None = None) -> TestClient:
    return TestClient(create_app(db_path=tmp_path / "api.db", generator=generator))


def _create_story(client: TestClient, *, title: str = "Lantern") -> dict[str, object]:
    response = client.post(
        "/api/v1/stories",
        json={"title": title, "passage": "A lantern swung in the dark."},
    )
    assert response.status_code == 201
    return response.json()


def test_health_and_root_endpoints(tmp_path: Path) -> None:
    client = _client(tmp_path)
    assert client.get("/healthz").json() == {"status": "ok", "service": "story_spine"}
    root = client.get("/api/v1").json()
    assert root["persistence"] == "sqlite"
    assert "/api/v1/stories/{story_id}/passages" in root["endpoints"]


def test_generate_opening_returns_uncommitted_result(tmp_path: Path) -> None:
    client = _client(tmp_path, _FakeGenerator())
    response = client.post(
        "/api/v1/openings",
        json={"image_base64": base64.b64encode(b"png-bytes").decode("ascii"), "mime_type": "IMAGE/PNG"},
    )
    assert response.status_code == 200
    assert response.json() == {"title": "Lantern", "passage": "A lantern swung in the dark."}
    assert client.get("/api/v1/stories").json() == []


def test_generate_opening_rejects_bad_payloads(tmp_path: Path) -> None:
    client = _client(tmp_path, _FakeGenerator())
    bad_mime = client.post(
        "/api/v1/openings",
        json={"image_base64": "aGVsbG8=", "mime_type": "text/plain"},
    )
    bad_base64 = client.post("/api/v1/openings", json={"image_base64": "***"})
    assert bad_mime.status_code == 422
    assert bad_base64.status_code == 422


def test_create_story_commits_opening(tmp_path: Path) -> None:
    client = _client(tmp_path)
    story = _create_story(client)

    assert story["title"] == "Lantern"
    assert story["complete"] is False
    assert story["progress"] == "In progress • step 2 of 7"
    assert story["current_step"] == {
        "rank": 2,
        "title": "Every day...",
        "description": "Establish the normal routine or status quo",
    }
    assert story["passages"] == [
        {"step_rank": 1, "step_title": "Once upon a time...", "text": "A lantern swung in the dark."}
    ]
    fetched = client.get(f"/api/v1/stories/{story['story_id']}")
    assert fetched.json() == story


def test_create_story_rejects_blank_passage(tmp_path: Path) -> None:
    client = _client(tmp_path)
    response = client.post("/api/v1/stories", json={"title": "x", "passage": "   "})
    assert response.status_code == 422


def test_walk_story_to_completion(tmp_path: Path) -> None:
    client = _client(tmp_path, _FakeGenerator())
    story_id = _create_story(client)["story_id"]

    for _ in range(6):
        options = client.post(f"/api/v1/stories/{story_id}/continuations")
        assert options.status_code == 200
        body = options.json()
        committed = client.post(
            f"/api/v1/stories/{story_id}/passages", json={"text": body["option_a"]}
        )
        assert committed.status_code == 200

    story = client.get(f"/api/v1/stories/{story_id}").json()
    assert story["complete"] is True
    assert story["progress"] == "Completed • step 7 of 7"
    assert len(story["passages"]) == 7
    assert story["full_text"].startswith("Lantern\n\nOnce upon a time...\n")

    assert client.post(f"/api/v1/stories/{story_id}/continuations").status_code == 409
    late = client.post(f"/api/v1/stories/{story_id}/passages", json={"text": "Epilogue."})
    assert late.status_code == 409


def test_continuations_report_step_being_written(tmp_path: Path) -> None:
    client = _client(tmp_path, _FakeGenerator())
    story_id = _create_story(client)["story_id"]
    body = client.post(f"/api/v1/stories/{story_id}/continuations").json()
    assert body["step"]["rank"] == 2
    assert body["option_a"] == "Left 1."
    assert body["option_b"] == "Right 1."


@pytest.mark.parametrize(
    ("failure", "status_code"),
    [(GenerationQuotaError("quota"), 429), (GenerationNetworkError("down"), 502)],
)
def test_generation_failures_map_to_http_errors(
    tmp_path: Path, failure: Exception, status_code: int
) -> None:
    generator = _FakeGenerator()
    client = _client(tmp_path, generator)
    story_id = _create_story(client)["story_id"]
    generator.failure = failure

    response = client.post(f"/api/v1/stories/{story_id}/continuations")

    assert response.status_code == status_code
    story = client.get(f"/api/v1/stories/{story_id}").json()
    assert story["current_step"]["rank"] == 2


def test_missing_generator_config_is_service_unavailable(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.delenv("STORY_SPINE_GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    client = _client(tmp_path)
    story_id = _create_story(client)["story_id"]
    response = client.post(f"/api/v1/stories/{story_id}/continuations")
    assert response.status_code == 503


def test_list_filter_and_delete(tmp_path: Path) -> None:
    client = _client(tmp_path)
    first = _create_story(client, title="")
    second = _create_story(client, title="Second")

    listed = client.get("/api/v1/stories").json()
    assert {item["story_id"] for item in listed} == {first["story_id"], second["story_id"]}
    assert first["title"] == "Untitled story"
    assert client.get("/api/v1/stories", params={"status": "completed"}).json() == []
    assert len(client.get("/api/v1/stories", params={"status": "in_progress"}).json()) == 2
    assert client.get("/api/v1/stories", params={"status": "other"}).status_code == 422

    deleted = client.delete(f"/api/v1/stories/{first['story_id']}")
    assert deleted.status_code == 204
    assert client.get(f"/api/v1/stories/{first['story_id']}").status_code == 404
    assert client.delete(f"/api/v1/stories/{first['story_id']}").status_code == 404


def test_unknown_story_is_not_found(tmp_path: Path) -> None:
    client = _client(tmp_path, _FakeGenerator())
    assert client.get("/api/v1/stories/nope").status_code == 404
    assert client.post("/api/v1/stories/nope/continuations").status_code == 404
    assert client.post("/api/v1/stories/nope/passages", json={"text": "x"}).status_code == 404
