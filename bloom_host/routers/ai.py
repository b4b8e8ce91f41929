import json
import logging

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import ValidationError

from bloom_host.core.exceptions import RelayError
from bloom_host.schemas.ai import ActionRequest
from bloom_host.services.relay import RelayService, get_relay

logger = logging.getLogger(__name__)

ALLOWED_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": ", ".join(ALLOWED_HEADERS),
}

RELAY_PATH = "/ai-learning"

ai_router = APIRouter(tags=["ai"])


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code, headers=CORS_HEADERS)


@ai_router.options(RELAY_PATH)
async def ai_learning_preflight():
    return Response(status_code=200, headers=CORS_HEADERS)


@ai_router.post(RELAY_PATH)
async def ai_learning(request: Request, relay: RelayService = Depends(get_relay)):
    """Run one AI action; mentor_chat answers with the upstream SSE stream."""
    try:
        payload = ActionRequest.model_validate(await request.json())
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.warning("⚠️  Rejected request with a non-JSON body")
        return error_response("Request body must be JSON", 400)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        logger.warning(f"⚠️  Rejected invalid request: {location} {first['msg']}")
        return error_response(f"Invalid request: {location} {first['msg']}".strip(), 400)

    logger.info(f"🤖 AI action requested: {payload.action}")
    try:
        if relay.is_streaming(payload):
            body = await relay.stream_chat(payload)
            return StreamingResponse(
                body,
                media_type="text/event-stream",
                headers={**CORS_HEADERS, "Cache-Control": "no-cache"},
            )

        result = await relay.run(payload)
        return JSONResponse({"result": result}, headers=CORS_HEADERS)
    except RelayError as e:
        logger.error(f"❌ {payload.action} failed ({e.status_code}): {e.message}")
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.exception(f"❌ AI learning function error: {e}")
        return error_response(str(e) or "Unknown error", 500)
