import logging
from typing import Any, AsyncIterator

from fastapi import Depends

from bloom_host.core.config import settings
from bloom_host.core.exceptions import UnknownActionError
from bloom_host.schemas.ai import Action, ActionRequest
from bloom_host.services.gateway import GatewayClient, get_gateway
from bloom_host.services.parsing import parse_action_result
from bloom_host.services.prompts import (
    build_chat_messages,
    build_prompts,
    resolve_action,
)

logger = logging.getLogger(__name__)


class RelayService:
    """Maps an action onto its prompts and forwards it to the LLM gateway."""

    def __init__(self, gateway: GatewayClient, history_limit: int = 10):
        self.gateway = gateway
        self.history_limit = history_limit

    def is_streaming(self, request: ActionRequest) -> bool:
        return resolve_action(request.action) == Action.MENTOR_CHAT

    async def run(self, request: ActionRequest) -> Any:
        """Execute a structured action and return the value for `result`."""
        action = resolve_action(request.action)
        if action == Action.MENTOR_CHAT:
            raise UnknownActionError(request.action)

        system_prompt, user_prompt = build_prompts(request)
        logger.info(f"Relaying {action.value} (topic={request.topic!r})")
        content = await self.gateway.complete(
            [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ]
        )
        logger.info(f"Raw AI response: {content[:500]}")
        return parse_action_result(action, content)

    async def stream_chat(self, request: ActionRequest) -> AsyncIterator[bytes]:
        """Open the mentor chat stream; the returned iterator yields upstream bytes verbatim."""
        messages = build_chat_messages(request, self.history_limit)
        logger.info(
            f"Relaying mentor_chat with {len(messages) - 2} history message(s) "
            f"of {len(request.chat_history)} received"
        )
        return await self.gateway.stream(messages)


def get_relay(gateway: GatewayClient = Depends(get_gateway)) -> RelayService:
    return RelayService(gateway, history_limit=settings.CHAT_HISTORY_LIMIT)
