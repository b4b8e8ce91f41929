"""
Client for the BloomIQ AI relay.

Structured actions go through `AIClient.call` and come back as the relay's
`result` value; the mentor chat streams through `AIClient.stream_chat`.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

import httpx

from bloom_client.config import ClientSettings
from bloom_client.errors import RequestError, StreamError
from bloom_client.sse import SSEDeltaDecoder

logger = logging.getLogger(__name__)


class AIClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        publishable_key: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        settings = ClientSettings()
        self.url = base_url or settings.API_URL
        self.publishable_key = (
            publishable_key if publishable_key is not None else settings.PUBLISHABLE_KEY
        )
        self._owns_client = http_client is None
        # No timeout: mentor replies stream for as long as the model writes
        self._http = http_client or httpx.AsyncClient(timeout=None)

    @property
    def headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.publishable_key:
            headers["Authorization"] = f"Bearer {self.publishable_key}"
        return headers

    async def call(self, action: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """POST one action and return the `result` field of the reply."""
        body = {**(params or {}), "action": action}
        try:
            response = await self._http.post(self.url, json=body, headers=self.headers)
        except httpx.HTTPError as e:
            logger.error(f"AI request {action} failed: {e}")
            raise RequestError(f"AI request failed: {e}") from e

        if response.status_code < 200 or response.status_code >= 300:
            message = _error_message(response) or f"AI request failed: {response.status_code}"
            logger.error(f"AI request {action} returned {response.status_code}: {message}")
            raise RequestError(message, status_code=response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise RequestError("AI response was not valid JSON", response.status_code) from e
        if not isinstance(data, dict):
            raise RequestError("AI response was not valid JSON", response.status_code)
        return data.get("result")

    # ---- typed helpers ----

    async def generate_roadmap(self, topic: str) -> List[Dict[str, Any]]:
        return await self.call("generate_roadmap", {"topic": topic})

    async def generate_assessment(self, topic: str) -> List[Dict[str, Any]]:
        return await self.call("generate_assessment", {"topic": topic})

    async def generate_personalized_roadmap(
        self,
        topic: str,
        assessment_answers: List[int],
        assessment_questions: List[Dict[str, Any]],
    ) -> List[Dict[str, Any]]:
        return await self.call(
            "generate_personalized_roadmap",
            {
                "topic": topic,
                "assessmentAnswers": assessment_answers,
                "assessmentQuestions": assessment_questions,
            },
        )

    async def generate_quiz(
        self,
        topic: str,
        node_title: Optional[str] = None,
        difficulty: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        return await self.call(
            "generate_quiz",
            _compact({"topic": topic, "nodeTitle": node_title, "difficulty": difficulty}),
        )

    async def explain_answer(
        self, question: str, user_answer: str, correct_answer: str
    ) -> Any:
        return await self.call(
            "explain_answer",
            {
                "question": question,
                "userAnswer": user_answer,
                "correctAnswer": correct_answer,
            },
        )

    async def recommend_resources(
        self, topic: str, node_title: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        return await self.call(
            "recommend_resources", _compact({"topic": topic, "nodeTitle": node_title})
        )

    # ---- streaming ----

    async def stream_chat(
        self,
        topic: Optional[str],
        history: List[Dict[str, str]],
        message: str,
        on_delta: Callable[[str], None],
        on_done: Callable[[], None],
        on_error: Optional[Callable[[StreamError], None]] = None,
        on_malformed: Optional[Callable[[str], None]] = None,
    ) -> None:
        """
        Send a mentor_chat request and deliver the reply as it streams.

        `on_delta` gets each text fragment in order and `on_done` is called
        once when the stream ends. A failure to connect or a non-2xx status
        goes to `on_error` instead; nothing is raised.
        """
        body = {
            "action": "mentor_chat",
            "topic": topic,
            "chatHistory": history,
            "userMessage": message,
        }
        decoder = SSEDeltaDecoder(on_malformed=on_malformed)

        try:
            async with self._http.stream(
                "POST", self.url, json=body, headers=self.headers
            ) as response:
                if response.status_code < 200 or response.status_code >= 300:
                    await response.aread()
                    reason = _error_message(response) or "Failed to start chat stream"
                    logger.error(f"Chat stream rejected ({response.status_code}): {reason}")
                    _report(on_error, StreamError(reason, response.status_code))
                    return

                async for chunk in response.aiter_bytes():
                    for delta in decoder.feed(chunk):
                        on_delta(delta)
                    if decoder.done:
                        break
        except httpx.HTTPError as e:
            logger.error(f"Chat stream failed: {e}")
            _report(on_error, StreamError(f"Chat stream failed: {e}"))
            return

        for delta in decoder.flush():
            on_delta(delta)
        on_done()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self) -> "AIClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


def _compact(params: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in params.items() if value is not None}


def _error_message(response: httpx.Response) -> Optional[str]:
    try:
        data = response.json()
    except ValueError:
        return None
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return None


def _report(on_error: Optional[Callable[[StreamError], None]], error: StreamError) -> None:
    if on_error is not None:
        on_error(error)
