"""
Unit Tests: RecommendationClient request building, decoding and error classification

The service is replaced with httpx.MockTransport, so no network is used.

Run with: pytest testing/test_recommendation_client.py -v
"""

import asyncio
import json

import httpx
import pytest

from recommender.client import RecommendationClient
from recommender.exceptions import (
    NetworkTimeoutError,
    RecommendationError,
    ResponseDecodeError,
    ServerStatusError,
    ServiceConnectionError,
)

BASE_URL = "http://recommender.test"
CONTEXT = {"activity_id": "ACT021", "session_completed": "yes", "engagement_rating": 4.0}


def make_client(handler, timeout: float = 15.0) -> RecommendationClient:
    return RecommendationClient(base_url=BASE_URL, timeout=timeout, transport=httpx.MockTransport(handler))


def json_handler(body, status_code: int = 200, seen: list = None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, json=body)
    return handler


class TestRequest:

    @pytest.mark.asyncio
    async def test_posts_exact_payload_to_predict(self):
        seen = []
        client = make_client(json_handler({"top1_recommendation": None}, seen=seen))

        await client.predict(CONTEXT, top_k=5, followup_n=3, exclude_ids=["ACT021", "ACT102"])

        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == f"{BASE_URL}/predict"
        assert request.headers["content-type"] == "application/json"
        assert json.loads(request.content) == {
            "top_k": 5,
            "followup_n": 3,
            "context": CONTEXT,
            "exclude_ids": ["ACT021", "ACT102"],
        }

    @pytest.mark.asyncio
    async def test_exclude_ids_default_to_empty_list(self):
        seen = []
        client = make_client(json_handler({}, seen=seen))

        await client.predict(CONTEXT)

        body = json.loads(seen[0].content)
        assert body["exclude_ids"] == []
        assert body["top_k"] == 5
        assert body["followup_n"] == 3

    def test_trailing_slash_in_base_url_is_ignored(self):
        client = RecommendationClient(base_url=f"{BASE_URL}/")
        assert client.predict_endpoint == f"{BASE_URL}/predict"


class TestDecoding:

    @pytest.mark.asyncio
    async def test_full_response(self):
        body = {
            "top1_recommendation": {
                "activity_id": "ACT034",
                "name": "Turn-taking",
                "description": "Roll a car",
                "detailed_description": "Sit facing the child",
                "weekly_plan": "Mon–Fri",
                "prob": 0.81,
            },
            "follow_up_questions": ["Q1", "Q2"],
        }
        response = await make_client(json_handler(body)).predict(CONTEXT)

        assert response.top1.activity_id == "ACT034"
        assert response.top1.name == "Turn-taking"
        assert response.top1.detailed_description == "Sit facing the child"
        assert response.top1.weekly_plan == "Mon–Fri"
        assert response.top1.prob == pytest.approx(0.81)
        assert response.follow_up_questions == ["Q1", "Q2"]

    @pytest.mark.asyncio
    async def test_missing_top1_is_none(self):
        response = await make_client(json_handler({"follow_up_questions": ["Q1"]})).predict(CONTEXT)
        assert response.top1 is None
        assert response.follow_up_questions == ["Q1"]

    @pytest.mark.asyncio
    async def test_null_top1_is_none(self):
        response = await make_client(json_handler({"top1_recommendation": None})).predict(CONTEXT)
        assert response.top1 is None

    @pytest.mark.asyncio
    async def test_missing_follow_ups_is_empty(self):
        body = {"top1_recommendation": {"activity_id": "ACT099", "prob": 0.8}}
        response = await make_client(json_handler(body)).predict(CONTEXT)
        assert response.follow_up_questions == []

    @pytest.mark.asyncio
    async def test_follow_ups_are_stringified(self):
        response = await make_client(json_handler({"follow_up_questions": [1, "two"]})).predict(CONTEXT)
        assert response.follow_up_questions == ["1", "two"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("top1", [{"activity_id": "ACT099"}, {"activity_id": "ACT099", "prob": None}])
    async def test_missing_prob_defaults_to_zero(self, top1):
        response = await make_client(json_handler({"top1_recommendation": top1})).predict(CONTEXT)
        assert response.top1.prob == 0.0
        assert response.top1.name is None


class TestErrors:

    @pytest.mark.asyncio
    async def test_non_200_raises_server_status_error(self):
        def handler(request):
            return httpx.Response(500, text="model exploded")

        with pytest.raises(ServerStatusError) as exc_info:
            await make_client(handler).predict(CONTEXT)

        assert exc_info.value.status == 500
        assert exc_info.value.body == "model exploded"
        assert str(exc_info.value) == "Server 500: model exploded"

    @pytest.mark.asyncio
    async def test_non_200_with_json_body_keeps_raw_text(self):
        with pytest.raises(ServerStatusError) as exc_info:
            await make_client(json_handler({"detail": "bad"}, status_code=422)).predict(CONTEXT)
        assert exc_info.value.status == 422
        assert json.loads(exc_info.value.body) == {"detail": "bad"}

    @pytest.mark.asyncio
    async def test_invalid_json_raises_decode_error(self):
        def handler(request):
            return httpx.Response(200, text="<html>oops</html>")

        with pytest.raises(ResponseDecodeError):
            await make_client(handler).predict(CONTEXT)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [
        ["not", "an", "object"],
        {"top1_recommendation": {"name": "no id"}},
        {"top1_recommendation": {"activity_id": ""}},
        {"top1_recommendation": {"activity_id": "ACT1", "prob": "high"}},
        {"follow_up_questions": "Q1"},
    ])
    async def test_wrong_shape_raises_decode_error(self, body):
        with pytest.raises(ResponseDecodeError):
            await make_client(json_handler(body)).predict(CONTEXT)

    @pytest.mark.asyncio
    async def test_transport_timeout_raises_network_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("read timed out", request=request)

        with pytest.raises(NetworkTimeoutError) as exc_info:
            await make_client(handler).predict(CONTEXT)

        assert isinstance(exc_info.value, TimeoutError)
        assert exc_info.value.timeout_seconds == 15.0

    @pytest.mark.asyncio
    async def test_slow_service_hits_deadline(self):
        async def handler(request):
            await asyncio.sleep(5)
            return httpx.Response(200, json={})

        with pytest.raises(NetworkTimeoutError):
            await make_client(handler, timeout=0.05).predict(CONTEXT)

    @pytest.mark.asyncio
    async def test_connection_failure_raises_service_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ServiceConnectionError):
            await make_client(handler).predict(CONTEXT)

    @pytest.mark.asyncio
    async def test_no_retry_on_failure(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(503, text="busy")

        with pytest.raises(RecommendationError):
            await make_client(handler).predict(CONTEXT)
        assert len(seen) == 1
