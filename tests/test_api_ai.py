"""
HTTP tests for the AI endpoints.
"""
import json
import uuid

from catalog.errors import ModelInvocationError


def summary_reply(product_id="1", name="Zeta 15"):
    return json.dumps({
        "item": {"id": product_id, "name": name, "price": 18500, "pros": ["Light"], "cons": []},
        "summary": {"tldr": "Good value.", "value_for_money": "good"},
    })


def compare_reply():
    items = [{"id": pid, "name": pid, "pros": [], "cons": ["Heavy"]} for pid in ("1", "4")]
    return json.dumps({"comparison": items, "summary": {"tldr": "4 is faster, 1 is cheaper."}})


def assert_request_id(value):
    assert str(uuid.UUID(value)) == value


class TestParseFilters:

    def test_translates(self, client, llm):
        llm.replies.append('{"brands": ["Acer", "Dell"], "sort": "price_asc"}')
        response = client.post("/api/ai/parse-filters", json={"text": "ucuz acer"})
        assert response.status_code == 200
        body = response.json()
        assert body["brands"] == ["Acer"]
        assert body["sort"] == "price_asc"
        assert body["price"] == {"min": None, "max": None, "exact": None}

    def test_blank_text(self, client, llm):
        response = client.post("/api/ai/parse-filters", json={"text": "  "})
        assert response.status_code == 400
        assert "text" in response.json()["detail"]["error"]
        assert llm.calls == []

    def test_unreadable_body(self, client):
        response = client.post(
            "/api/ai/parse-filters", content="not json", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400

    def test_model_down_gives_defaults(self, client, llm):
        llm.error = ModelInvocationError("AI service unavailable")
        response = client.post("/api/ai/parse-filters", json={"text": "16 gb ram"})
        assert response.status_code == 200
        assert response.json()["categories"] == []
        assert response.json()["sort"] == "alphabetical"


class TestSummarize:

    def test_success(self, client, llm):
        llm.replies.append(summary_reply())
        response = client.post("/api/ai/summarize", json={"productIds": ["1"]})
        assert response.status_code == 200
        body = response.json()
        assert_request_id(body["request_id"])
        assert body["item"]["id"] == "1"
        assert body["summary"]["value_for_money"] == "good"

    def test_wrong_count(self, client, llm):
        response = client.post("/api/ai/summarize", json={"productIds": ["1", "2"]})
        assert response.status_code == 400
        assert_request_id(response.json()["detail"]["request_id"])
        assert llm.calls == []

    def test_not_found(self, client):
        response = client.post("/api/ai/summarize", json={"productIds": ["999"]})
        assert response.status_code == 404

    def test_invalid_model_json(self, client, llm):
        llm.replies.append("The laptop is nice.")
        response = client.post("/api/ai/summarize", json={"productIds": ["1"]})
        assert response.status_code == 502
        detail = response.json()["detail"]
        assert detail["error"] == "Model returned invalid JSON."
        assert_request_id(detail["request_id"])

    def test_model_unavailable(self, client, llm):
        llm.error = ModelInvocationError("AI service unavailable")
        response = client.post("/api/ai/summarize", json={"productIds": ["1"]})
        assert response.status_code == 502
        assert response.json()["detail"]["error"] == "AI service unavailable"

    def test_unexpected_failure(self, client, store):
        store.error = RuntimeError("DB down")
        response = client.post("/api/ai/summarize", json={"productIds": ["1"]})
        assert response.status_code == 500
        assert response.json()["detail"]["error"] == "Unexpected error"
        assert "DB down" not in response.text


class TestCompare:

    def test_success(self, client, llm):
        llm.replies.append(compare_reply())
        response = client.post("/api/ai/compare", json={"productIds": ["1", "4"]})
        assert response.status_code == 200
        body = response.json()
        assert [item["id"] for item in body["comparison"]] == ["1", "4"]
        assert body["summary"]["value_for_money"] == "average"
        assert_request_id(body["request_id"])

    def test_requires_two_ids(self, client):
        response = client.post("/api/ai/compare", json={"productIds": ["1"]})
        assert response.status_code == 400

    def test_missing_product(self, client, llm):
        response = client.post("/api/ai/compare", json={"productIds": ["1", "999"]})
        assert response.status_code == 404
        assert llm.calls == []

    def test_schema_failure(self, client, llm):
        llm.replies.append(json.dumps({"comparison": [], "summary": {"tldr": "?"}}))
        response = client.post("/api/ai/compare", json={"productIds": ["1", "4"]})
        assert response.status_code == 502
        assert "details" in response.json()["detail"]
