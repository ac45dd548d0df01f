from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from yang_schema_api import app as app_module
from yang_schema_api.app import app, get_coordinator
from yang_schema_api.coordinator import ParseCoordinator, ParserConfig

FIXTURES = Path(__file__).resolve().parent / "fixtures" / "yang"

SCENARIO_A = 'module m { namespace "urn:x"; prefix "m"; container c { leaf l { type string; } } }'


def override_coordinator():
    return ParseCoordinator(ParserConfig(cache_results=False, search_path=str(FIXTURES)))


def create_client():
    app.dependency_overrides[get_coordinator] = override_coordinator
    return TestClient(app)


@pytest.fixture(autouse=True)
def clear_overrides():
    yield
    app.dependency_overrides.clear()
    get_coordinator.cache_clear()


def test_parse_single_document():
    client = create_client()
    response = client.post("/api/yang/parse", json={"content": SCENARIO_A, "filename": "m.yang"})
    assert response.status_code == 200
    data = response.json()
    assert data["valid"] is True
    assert data["parser"] == "primary"
    assert set(data) == {"valid", "tree", "modules", "errors", "metadata", "parser"}
    container = data["tree"]["m"]["children"][0]
    assert container["type"] == "container"
    assert container["children"][0]["name"] == "l"
    assert data["metadata"]["filename"] == "m.yang"
    assert data["metadata"]["namespace"] == "urn:x"


def test_parse_defaults_filename():
    client = create_client()
    response = client.post("/api/yang/parse", json={"content": SCENARIO_A})
    assert response.status_code == 200
    assert response.json()["metadata"]["filename"] == "temp.yang"


def test_parse_unbalanced_document_uses_fallback():
    client = create_client()
    content = 'module m { namespace "urn:x"; prefix "m"; container c { leaf l { type string; }'
    response = client.post("/api/yang/parse", json={"content": content})
    assert response.status_code == 200
    data = response.json()
    assert data["valid"] is False
    assert data["parser"] == "fallback"
    assert any("Unmatched braces" in e["message"] for e in data["errors"])


def test_parse_empty_document():
    client = create_client()
    data = client.post("/api/yang/parse", json={"content": ""}).json()
    assert data["valid"] is False
    assert data["modules"] == []
    assert "No module or submodule declaration found" in [e["message"] for e in data["errors"]]


@pytest.mark.parametrize("payload", [{"content": 123}, {"content": None}, {"filename": "x.yang"}])
def test_parse_rejects_non_string_content(payload):
    client = create_client()
    response = client.post("/api/yang/parse", json=payload)
    assert response.status_code == 400
    assert response.json() == {"error": "Content must be a string"}


def test_parse_rejects_missing_body():
    client = create_client()
    response = client.post("/api/yang/parse")
    assert response.status_code == 400
    assert response.json() == {"error": "Content must be a string"}


def test_parse_rejects_non_string_filename():
    client = create_client()
    response = client.post("/api/yang/parse", json={"content": SCENARIO_A, "filename": 5})
    assert response.status_code == 400
    assert response.json() == {"error": "Filename must be a string"}


def test_parse_rejects_oversized_content(monkeypatch):
    monkeypatch.setattr(app_module, "MAX_CONTENT_BYTES", 10)
    client = create_client()
    response = client.post("/api/yang/parse", json={"content": SCENARIO_A})
    assert response.status_code == 413
    assert "too large" in response.json()["error"]


def test_parse_multiple_builds_dependency_graph():
    client = create_client()
    files = [
        {"name": "A.yang", "content": (FIXTURES / "module-a.yang").read_text()},
        {"name": "B.yang", "content": (FIXTURES / "module-b.yang").read_text()},
    ]
    response = client.post("/api/yang/parse-multiple", json={"files": files})
    assert response.status_code == 200
    data = response.json()

    assert set(data) == {"files", "dependencies", "graph", "summary"}
    assert [f["filename"] for f in data["files"]] == ["A.yang", "B.yang"]
    assert data["dependencies"]["B.yang"] == ["module-a"]
    assert data["graph"]["edges"] == [{"source": "B.yang", "target": "module-a", "kind": "import"}]
    assert {"id": "module-a", "label": "module-a"} in data["graph"]["nodes"]
    assert data["summary"]["totalModules"] == 2


def test_parse_multiple_resolves_batch_imports_without_search_path():
    app.dependency_overrides[get_coordinator] = lambda: ParseCoordinator(
        ParserConfig(cache_results=False)
    )
    client = TestClient(app)
    files = [
        {"name": "A.yang", "content": (FIXTURES / "module-a.yang").read_text()},
        {"name": "B.yang", "content": (FIXTURES / "module-b.yang").read_text()},
    ]
    response = client.post("/api/yang/parse-multiple", json={"files": files})
    assert response.status_code == 200
    data = response.json()

    assert [f["valid"] for f in data["files"]] == [True, True]
    assert [f["parser"] for f in data["files"]] == ["primary", "primary"]
    assert data["summary"]["validModules"] == 2
    assert data["summary"]["totalModules"] == 2


@pytest.mark.parametrize("payload", [{"files": "nope"}, {"files": {"a": 1}}, {}])
def test_parse_multiple_rejects_non_array(payload):
    client = create_client()
    response = client.post("/api/yang/parse-multiple", json=payload)
    assert response.status_code == 400
    assert response.json() == {"error": "Files must be an array"}


def test_parse_multiple_rejects_bad_entries():
    client = create_client()
    response = client.post("/api/yang/parse-multiple", json={"files": [{"name": "a.yang", "content": 1}]})
    assert response.status_code == 400
    assert response.json() == {"error": "Each file must have a string name and content"}


def test_health_endpoint():
    client = create_client()
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["grammar_engine"].startswith("pyang")
    assert response.headers["X-API-Version"] == data["version"]


def test_parser_config_round_trip(monkeypatch):
    monkeypatch.setattr(app_module, "PARSER_CONFIG", ParserConfig())
    get_coordinator.cache_clear()
    client = TestClient(app)

    assert client.get("/config/parser").json()["enable_primary"] is True

    response = client.post("/config/parser", json={"enable_primary": False, "max_workers": 2})
    assert response.status_code == 200
    assert sorted(response.json()["updated_fields"]) == ["enable_primary", "max_workers"]

    config = client.get("/config/parser").json()
    assert config["enable_primary"] is False
    assert config["max_workers"] == 2

    data = client.post("/api/yang/parse", json={"content": SCENARIO_A}).json()
    assert data["parser"] == "fallback"


def test_parser_config_validation():
    client = create_client()
    response = client.post("/config/parser", json={"max_workers": 0})
    assert response.status_code == 422


def test_metrics_endpoints():
    client = create_client()
    client.post("/metrics/reset")
    client.post("/api/yang/parse", json={"content": SCENARIO_A})

    performance = client.get("/metrics/performance").json()
    assert performance["parsing"]["documents"] >= 1
    assert performance["api"]["total_requests"] >= 1

    cache = client.get("/metrics/cache").json()
    assert "performance" in cache
    assert cache["cache_stats"] == {"cache_available": False}

    reset = client.post("/metrics/reset").json()
    assert reset["message"] == "All metrics have been reset"


def test_not_found_is_json():
    client = create_client()
    response = client.get("/does-not-exist")
    assert response.status_code == 404
    body = response.json()
    assert body["error"] == "Not Found"
    assert body["path"] == "/does-not-exist"
