"""
Recommendation Client

HTTP client for the remote recommendation service. Each predict() call is a
single POST {base_url}/predict round trip: no retries, no backoff, no caching.
Failures are classified into the exceptions in recommender.exceptions.
"""

import asyncio
import httpx
import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from recommender.config_loader import load_config
from recommender.exceptions import (
    NetworkTimeoutError,
    ResponseDecodeError,
    ServerStatusError,
    ServiceConnectionError,
)
from recommender.models import PredictionRequest, PredictionResponse
from utils.log_utils import log_json

logger = logging.getLogger(__name__)

_NOT_JSON = object()


class RecommendationClient:
    """Client for the /predict endpoint of the recommendation service."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize recommendation client.

        Args:
            base_url: Service base URL (defaults to config value)
            timeout: Deadline in seconds for the whole round trip (defaults to config value)
            transport: Optional httpx transport, used to route requests in-process
        """
        config = load_config()
        self.base_url = (base_url or config["base_url"]).rstrip("/")
        self.timeout = float(timeout or config["timeout_seconds"])
        self.predict_endpoint = f"{self.base_url}/predict"
        self._transport = transport

        logger.info(f"RecommendationClient initialized with URL: {self.base_url}")

    @staticmethod
    def build_payload(
        context: Dict[str, Any],
        top_k: int = 5,
        followup_n: int = 3,
        exclude_ids: Optional[List[str]] = None
    ) -> Dict[str, Any]:
        """Build the JSON body. Always exactly top_k, followup_n, context, exclude_ids."""
        request = PredictionRequest(
            top_k=top_k,
            followup_n=followup_n,
            context=context,
            exclude_ids=list(exclude_ids or [])
        )
        return request.model_dump()

    async def predict(
        self,
        context: Dict[str, Any],
        top_k: int = 5,
        followup_n: int = 3,
        exclude_ids: Optional[List[str]] = None
    ) -> PredictionResponse:
        """
        Ask the service for the next activity.

        Args:
            context: Answers for the finished activity, sent verbatim
            top_k: Number of candidates the model ranks
            followup_n: Number of follow-up questions wanted
            exclude_ids: Activity ids the service must not recommend

        Returns:
            Decoded PredictionResponse

        Raises:
            NetworkTimeoutError: No response within self.timeout seconds
            ServiceConnectionError: The request failed before a response arrived
            ServerStatusError: Status other than 200
            ResponseDecodeError: 200 body is not the expected JSON shape
        """
        payload = self.build_payload(context, top_k, followup_n, exclude_ids)

        logger.info(f"POST {self.predict_endpoint}")
        logger.debug("Request headers: {Content-Type: application/json}")
        log_json(logger, "Request body", payload)

        try:
            response = await asyncio.wait_for(self._post(payload), timeout=self.timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.warning(f"Recommendation request timed out after {self.timeout:g}s")
            raise NetworkTimeoutError(self.timeout) from None
        except httpx.RequestError as e:
            logger.warning(f"Recommendation request failed: {e}")
            raise ServiceConnectionError(f"Could not reach {self.predict_endpoint}: {e}") from e

        return self._decode(response)

    async def _post(self, payload: Dict[str, Any]) -> httpx.Response:
        async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout), transport=self._transport) as client:
            return await client.post(
                self.predict_endpoint,
                json=payload,
                headers={"Content-Type": "application/json"}
            )

    def _decode(self, response: httpx.Response) -> PredictionResponse:
        logger.info(f"Response status: {response.status_code}")

        try:
            data = response.json()
            log_json(logger, "Response JSON", data)
        except ValueError:
            data = _NOT_JSON
            logger.debug(f"Response (text): {response.text}")

        if response.status_code != 200:
            raise ServerStatusError(response.status_code, response.text)

        if data is _NOT_JSON:
            raise ResponseDecodeError("Response body is not valid JSON")
        if not isinstance(data, dict):
            raise ResponseDecodeError(f"Expected a JSON object, got {type(data).__name__}")

        try:
            return PredictionResponse.model_validate(data)
        except ValidationError as e:
            raise ResponseDecodeError(f"Unexpected response shape: {e}") from e
