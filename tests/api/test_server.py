"""
API Server Tests

Exercise the FastAPI app in-process with TestClient.
"""

import pytest
from fastapi.testclient import TestClient

from cldengine.api.server import app, normalize_config_keys


BALANCING = (
    "Underperformance leads to resource allocation. "
    "Resource allocation increases performance. "
    "Performance reduces underperformance."
)


@pytest.fixture
def client():
    return TestClient(app)


class TestHealth:

    def test_health(self, client):
        response = client.get("/api/v1/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_default_config(self, client):
        body = client.get("/api/v1/config/default").json()
        assert body['loop_max_depth'] == 6
        assert 'triggers' in body['cue_lexicon']['positive']


class TestExtract:

    def test_extract(self, client):
        response = client.post("/api/v1/extract", json={
            "documents": [{"id": "d1", "text": BALANCING}],
        })
        assert response.status_code == 200
        body = response.json()
        assert len(body['variables']) == 3
        assert len(body['edges']) == 3
        assert body['loops'][0]['type'] == 'balancing'
        assert body['exports'] is None
        assert 'auditLog' not in body

    def test_include_audit(self, client):
        body = client.post("/api/v1/extract", json={
            "documents": [{"id": "d1", "text": BALANCING}],
            "includeAudit": True,
        }).json()
        assert body['auditLog'][0]['eventType'] == 'stage_started'

    def test_config_override(self, client):
        body = client.post("/api/v1/extract", json={
            "documents": [{"id": "d1", "text": BALANCING}],
            "config": {"prune_threshold": 0.95},
        }).json()
        assert len(body['edges']) == 2
        assert body['loops'] == []

    def test_max_depth(self, client):
        body = client.post("/api/v1/extract", json={
            "documents": [{"id": "d1", "text": BALANCING}],
            "maxDepth": 2,
        }).json()
        assert body['loops'] == []

    def test_invalid_config_is_400(self, client):
        response = client.post("/api/v1/extract", json={
            "documents": [{"id": "d1", "text": BALANCING}],
            "config": {"group_rules": [{"pattern": "(", "group": "policy"}]},
        })
        assert response.status_code == 400

    def test_non_string_stopwords_are_400(self, client):
        response = client.post("/api/v1/extract", json={
            "documents": [{"id": "d1", "text": BALANCING}],
            "config": {"theme_stopwords": [1]},
        })
        assert response.status_code == 400
        assert "theme_stopwords" in response.json()['detail']

    def test_null_confidence_value_is_400(self, client):
        response = client.post("/api/v1/extract", json={
            "documents": [{"id": "d1", "text": BALANCING}],
            "config": {"confidence": {"base": None}},
        })
        assert response.status_code == 400

    def test_camel_case_config_keys(self, client):
        body = client.post("/api/v1/extract", json={
            "documents": [{"id": "d1", "text": BALANCING}],
            "config": {"pruneThreshold": 0.95},
        }).json()
        assert len(body['edges']) == 2
        assert body['loops'] == []

    def test_duplicate_ids_are_400(self, client):
        response = client.post("/api/v1/extract", json={
            "documents": [{"id": "d1", "text": "a"}, {"id": "d1", "text": "b"}],
        })
        assert response.status_code == 400
        assert "Duplicate" in response.json()['detail']

    def test_require_edges_is_422(self, client):
        response = client.post("/api/v1/extract", json={
            "documents": [{"id": "d1", "text": "Better design improves building performance."}],
            "requireEdges": True,
        })
        assert response.status_code == 422
        assert "No causal relationships found" in response.json()['detail']

    def test_empty_result_without_require_edges(self, client):
        response = client.post("/api/v1/extract", json={
            "documents": [{"id": "d1", "text": "Nothing causal here."}],
        })
        assert response.status_code == 200
        assert response.json()['edges'] == []

    def test_missing_documents_is_validation_error(self, client):
        response = client.post("/api/v1/extract", json={})
        assert response.status_code == 422


class TestConfigKeyCasing:

    def test_top_level_and_nested_keys(self):
        assert normalize_config_keys({
            "pruneThreshold": 0.5,
            "confidence": {"maxPerSentenceEdges": 1, "base": 0.3},
            "cueLexicon": {"positive": ["drives"]},
        }) == {
            "prune_threshold": 0.5,
            "confidence": {"max_per_sentence_edges": 1, "base": 0.3},
            "cue_lexicon": {"positive": ["drives"]},
        }

    def test_label_tables_pass_through(self):
        normalized = normalize_config_keys({
            "themeToVariableMap": {"lowMorale": "morale"},
            "variable_synonyms": {"Morale": ["teamSpirit"]},
        })
        assert normalized["theme_to_variable_map"] == {"lowMorale": "morale"}
        assert normalized["variable_synonyms"] == {"Morale": ["teamSpirit"]}

    def test_snake_case_unchanged(self):
        config = {"theme_min_length": 4, "theme_stopwords": ["the"]}
        assert normalize_config_keys(config) == config

    def test_empty(self):
        assert normalize_config_keys(None) is None
