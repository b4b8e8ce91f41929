"""
Tests for the /ai-learning relay endpoint against a scripted LLM gateway.
"""

import json

from bloom_host.main import app
from bloom_host.services.gateway import GatewayClient, get_gateway

CORS_ORIGIN = "*"
CORS_ALLOWED = "authorization, x-client-info, apikey, content-type"


def assert_cors(response):
    assert response.headers["access-control-allow-origin"] == CORS_ORIGIN
    assert response.headers["access-control-allow-headers"] == CORS_ALLOWED


def sse(content: str) -> str:
    return "data: " + json.dumps({"choices": [{"delta": {"content": content}}]}) + "\n\n"


def test_preflight_returns_empty_ok_with_cors(client):
    response = client.options("/ai-learning")
    assert response.status_code == 200
    assert response.content == b""
    assert_cors(response)


def test_browser_preflight_is_answered_by_the_relay(client):
    response = client.options(
        "/ai-learning",
        headers={
            "Origin": "https://app.bloomiq.test",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "authorization, content-type, x-supabase-api-version",
        },
    )
    assert response.status_code == 200
    assert response.content == b""
    assert_cors(response)


def test_learning_routes_still_answer_browser_preflight(client):
    response = client.options(
        "/topics",
        headers={
            "Origin": "https://app.bloomiq.test",
            "Access-Control-Request-Method": "GET",
            "Access-Control-Request-Headers": "authorization",
        },
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"


def test_roadmap_result_is_normalized(client, upstream):
    upstream.reply('```json\n[{"title":"A","description":"d","order_index":0}]\n```')

    response = client.post("/ai-learning", json={"action": "generate_roadmap", "topic": "Rust"})

    assert response.status_code == 200
    assert response.json() == {"result": [{"title": "A", "description": "d", "order_index": 0}]}
    assert_cors(response)

    messages = upstream.last_messages
    assert [m["role"] for m in messages] == ["system", "user"]
    assert '"Rust"' in messages[1]["content"]
    assert upstream.requests[0]["model"] == "test-model"


def test_unparseable_quiz_is_a_500(client, upstream):
    upstream.reply("Sorry, I cannot help.")

    response = client.post("/ai-learning", json={"action": "generate_quiz", "topic": "Go"})

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to parse AI response. Please try again."}
    assert_cors(response)


def test_explain_answer_returns_plain_text(client, upstream):
    upstream.reply("Because 2 + 2 is 4, not 5.")

    response = client.post(
        "/ai-learning",
        json={
            "action": "explain_answer",
            "question": "2+2?",
            "userAnswer": "5",
            "correctAnswer": "4",
        },
    )

    assert response.json() == {"result": "Because 2 + 2 is 4, not 5."}


def test_unknown_action(client, upstream):
    response = client.post("/ai-learning", json={"action": "teleport"})

    assert response.status_code == 500
    assert response.json() == {"error": "Unknown action: teleport"}
    assert upstream.requests == []


def test_non_json_body_is_a_400(client):
    response = client.post(
        "/ai-learning", content=b"not json", headers={"content-type": "application/json"}
    )
    assert response.status_code == 400
    assert "error" in response.json()
    assert_cors(response)


def test_missing_action_is_a_400(client):
    response = client.post("/ai-learning", json={"topic": "Go"})
    assert response.status_code == 400
    assert response.json()["error"].startswith("Invalid request: action")


def test_rate_limit_is_passed_through(client, upstream):
    upstream.fail(429)

    response = client.post("/ai-learning", json={"action": "generate_roadmap", "topic": "Go"})

    assert response.status_code == 429
    assert response.json() == {"error": "Rate limit exceeded. Please try again later."}
    assert_cors(response)


def test_quota_exhaustion_is_passed_through(client, upstream):
    upstream.fail(402)

    response = client.post("/ai-learning", json={"action": "generate_roadmap", "topic": "Go"})

    assert response.status_code == 402
    assert response.json() == {"error": "Usage limit reached. Please try again later."}


def test_other_gateway_failures_are_a_500(client, upstream):
    upstream.fail(503, "upstream overloaded")

    response = client.post("/ai-learning", json={"action": "generate_roadmap", "topic": "Go"})

    assert response.status_code == 500
    assert response.json() == {"error": "AI gateway error"}


def test_unreachable_gateway_is_a_500(client, upstream):
    upstream.disconnect()

    response = client.post("/ai-learning", json={"action": "generate_roadmap", "topic": "Go"})

    assert response.status_code == 500
    assert response.json() == {"error": "AI gateway error"}


def test_mentor_chat_streams_upstream_bytes_verbatim(client, upstream):
    body = (": keep-alive\n\n" + sse("Hello") + sse(" there") + "data: [DONE]\n\n").encode()
    upstream.stream(body)

    response = client.post(
        "/ai-learning",
        json={"action": "mentor_chat", "topic": "Go", "userMessage": "hi"},
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    assert response.content == body
    assert_cors(response)
    assert upstream.requests[0]["stream"] is True


def test_mentor_chat_forwards_last_ten_history_messages(client, upstream):
    upstream.stream(b"data: [DONE]\n\n")
    history = [
        {"role": "user" if i % 2 == 0 else "assistant", "content": f"m{i}"}
        for i in range(15)
    ]

    client.post(
        "/ai-learning",
        json={
            "action": "mentor_chat",
            "topic": "Go",
            "chatHistory": history,
            "userMessage": "latest",
        },
    )

    messages = upstream.last_messages
    assert messages[0]["role"] == "system"
    assert "BloomIQ" in messages[0]["content"]
    assert [m["content"] for m in messages[1:-1]] == [f"m{i}" for i in range(5, 15)]
    assert messages[-1] == {"role": "user", "content": "latest"}


def test_mentor_chat_rate_limit_is_reported_before_streaming(client, upstream):
    upstream.fail(429)

    response = client.post(
        "/ai-learning", json={"action": "mentor_chat", "topic": "Go", "userMessage": "hi"}
    )

    assert response.status_code == 429
    assert response.json() == {"error": "Rate limit exceeded. Please try again later."}


def test_missing_gateway_key_is_a_500(client):
    app.dependency_overrides[get_gateway] = lambda: GatewayClient(
        api_key=None, base_url="http://gateway.test/v1", model="test-model"
    )

    response = client.post("/ai-learning", json={"action": "generate_roadmap", "topic": "Go"})

    assert response.status_code == 500
    assert response.json() == {"error": "LLM_API_KEY is not configured"}


def test_health(client):
    response = client.get("/health")
    assert response.json() == {"status": "healthy", "gateway_configured": True}
