"""
Tests for the FastAPI backend, the generation clients and the benchmark suite.
LLM and HTTP calls are mocked; nothing leaves the process.

Run: pytest tests/test_app.py -v
"""
from __future__ import annotations
import pytest
import requests
from unittest.mock import MagicMock, Mock, patch
from fastapi.testclient import TestClient

import app as app_module
from eval_benchmarks import BENCHMARK_CASES, run_benchmark
from llm.openai_client import build_user_message, make_openai_base_llm
from llm.remote_client import GenerationError, make_remote_generator


@pytest.fixture
def client():
    app_module.orchestrator.reset()
    yield TestClient(app_module.app)
    app_module.orchestrator.reset()


# =============================================================================
# SESSION ENDPOINTS
# =============================================================================

class TestSessionEndpoints:

    def test_health(self, client):
        body = client.get("/api/health").json()
        assert body["status"] == "healthy"
        assert body["mode"] in ("local", "remote")

    def test_templates(self, client):
        body = client.get("/api/templates").json()
        assert [t["id"] for t in body] == [
            "progress", "ratings", "map", "birthday", "cleaner", "summary",
        ]
        assert all(t["label"] and t["description"] for t in body)

    def test_instruct_then_patch(self, client):
        first = client.post("/api/instruct", json={"instruction": "notes tagged #recipes"}).json()
        assert first["success"] is True
        assert first["route"] == "synthesized"

        second = client.post("/api/instruct", json={"instruction": "sort by size descending"}).json()
        assert second["route"] == "patched"
        assert second["applied"] == ["sort"]
        assert "property: file.size" in second["document"]

    def test_empty_instruction(self, client):
        body = client.post("/api/instruct", json={"instruction": "  "}).json()
        assert body["success"] is False
        assert body["error"] == "Instruction is empty."

    def test_reset(self, client):
        client.post("/api/instruct", json={"instruction": "notes tagged #recipes"})
        assert client.post("/api/reset").json() == {"success": True}
        assert app_module.orchestrator.document is None

    def test_select_template(self, client):
        client.post("/api/instruct", json={"instruction": "notes tagged #recipes"})
        selected = client.post("/api/templates/birthday/select").json()
        assert selected["id"] == "birthday"

        body = client.post("/api/instruct", json={"instruction": selected["description"]}).json()
        assert body["route"] == "template"
        assert body["template_id"] == "birthday"

    def test_select_unknown_template(self, client):
        response = client.post("/api/templates/nope/select")
        assert response.status_code == 404


# =============================================================================
# GENERATION SERVICE
# =============================================================================

class TestGenerateEndpoint:

    def test_missing_instruction(self, client):
        response = client.post("/api/generate", json={})
        assert response.status_code == 400
        assert response.json() == {"error": "Missing instruction"}

    def test_missing_api_key(self, client):
        with patch("app.load_api_key", return_value=None):
            response = client.post("/api/generate", json={"instruction": "a base"})
        assert response.status_code == 500
        assert "error" in response.json()

    def test_generate(self, client):
        llm = Mock(return_value="views: []")
        with patch("app.load_api_key", return_value="sk-test"), \
             patch("app.make_openai_base_llm", return_value=llm):
            response = client.post(
                "/api/generate",
                json={"instruction": " add rating ", "currentDocument": "filters: {}"},
            )
        assert response.status_code == 200
        assert response.json() == {"document": "views: []"}
        llm.assert_called_once_with("add rating", "filters: {}")

    def test_llm_failure(self, client):
        llm = Mock(side_effect=RuntimeError("rate limited"))
        with patch("app.load_api_key", return_value="sk-test"), \
             patch("app.make_openai_base_llm", return_value=llm):
            response = client.post("/api/generate", json={"instruction": "a base"})
        assert response.status_code == 502
        assert response.json() == {"error": "AI service error. Please try again."}

    def test_empty_document(self, client):
        with patch("app.load_api_key", return_value="sk-test"), \
             patch("app.make_openai_base_llm", return_value=Mock(return_value="")):
            response = client.post("/api/generate", json={"instruction": "a base"})
        assert response.status_code == 502


# =============================================================================
# STRUCTURED BUILDER
# =============================================================================

class TestBuildEndpoint:

    def test_build(self, client):
        response = client.post("/api/build", json={
            "tags": "project, work",
            "logic": "or",
            "formulas": [{"name": "word_count", "expression": "(file.size / 5).round(0)"}],
            "custom_properties": "status",
            "limit": 20,
            "sort_by": "file.mtime",
            "sort_direction": "DESC",
            "summaries": [{"property": "formula.word_count", "summary": "Sum"}],
        })
        assert response.status_code == 200
        text = response.json()["document"]
        assert text.startswith("filters:\n  or:\n")
        assert 'displayName: "Word Count"' in text
        assert "    limit: 20\n" in text
        assert text.endswith("    summaries:\n      formula.word_count: Sum")

    def test_build_defaults(self, client):
        body = client.post("/api/build", json={}).json()
        assert body["document"].startswith('views:\n  - type: table\n    name: "Results"')

    def test_build_invalid(self, client):
        response = client.post("/api/build", json={"logic": "xor"})
        assert response.status_code == 400
        assert "logic" in response.json()["error"]


# =============================================================================
# CLIENTS
# =============================================================================

def _http_response(status: int, body=None, invalid_json: bool = False):
    response = Mock()
    response.ok = 200 <= status < 300
    response.status_code = status
    if invalid_json:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = body
    return response


class TestRemoteClient:

    def _generator(self, session):
        with patch("llm.remote_client.requests.Session", return_value=session):
            return make_remote_generator("http://localhost:9/api/generate")

    def test_success_strips_fences(self):
        session = MagicMock()
        session.post.return_value = _http_response(200, {"document": "```yaml\nviews: []\n```"})
        generate = self._generator(session)
        assert generate("make a base", "filters: {}") == "views: []"
        session.post.assert_called_once_with(
            "http://localhost:9/api/generate",
            json={"instruction": "make a base", "currentDocument": "filters: {}"},
            timeout=None,
        )

    def test_first_turn_omits_document(self):
        session = MagicMock()
        session.post.return_value = _http_response(200, {"document": "views: []"})
        self._generator(session)("make a base")
        assert session.post.call_args.kwargs["json"] == {"instruction": "make a base"}

    def test_error_body(self):
        session = MagicMock()
        session.post.return_value = _http_response(502, {"error": "AI service error. Please try again."})
        with pytest.raises(GenerationError, match="AI service error"):
            self._generator(session)("make a base")

    def test_error_without_body(self):
        session = MagicMock()
        session.post.return_value = _http_response(500, invalid_json=True)
        with pytest.raises(GenerationError, match="HTTP 500"):
            self._generator(session)("make a base")

    def test_unreachable(self):
        session = MagicMock()
        session.post.side_effect = requests.ConnectionError("refused")
        with pytest.raises(GenerationError, match="unreachable"):
            self._generator(session)("make a base")

    def test_invalid_json(self):
        session = MagicMock()
        session.post.return_value = _http_response(200, invalid_json=True)
        with pytest.raises(GenerationError, match="invalid JSON"):
            self._generator(session)("make a base")

    def test_empty_document(self):
        session = MagicMock()
        session.post.return_value = _http_response(200, {"document": ""})
        with pytest.raises(GenerationError, match="empty"):
            self._generator(session)("make a base")


class TestOpenAIClient:

    def test_user_message(self):
        assert build_user_message("make a base") == "make a base"
        message = build_user_message("add rating", "views: []")
        assert "views: []" in message and "add rating" in message

    def test_requires_api_key(self):
        with patch("llm.openai_client.load_api_key", return_value=None):
            with pytest.raises(RuntimeError):
                make_openai_base_llm()

    def test_completion_fences_stripped(self):
        completion = MagicMock()
        completion.choices[0].message.content = "```yaml\nviews: []\n```"
        with patch("llm.openai_client.load_api_key", return_value="sk-test"), \
             patch("llm.openai_client.OpenAI") as openai_cls:
            openai_cls.return_value.chat.completions.create.return_value = completion
            llm = make_openai_base_llm("gpt-4o-mini")
            assert llm("make a base") == "views: []"
        kwargs = openai_cls.return_value.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["messages"][-1] == {"role": "user", "content": "make a base"}


# =============================================================================
# BENCHMARKS
# =============================================================================

@pytest.mark.parametrize("case", BENCHMARK_CASES, ids=lambda c: c.name)
def test_benchmark_case(case):
    result = run_benchmark(case)
    assert result.passed, result.errors
