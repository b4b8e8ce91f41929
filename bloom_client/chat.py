import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from bloom_client.dispatcher import AIClient
from bloom_client.errors import StreamError

logger = logging.getLogger(__name__)


def mentor_greeting(topic: str, node_title: Optional[str] = None) -> str:
    focus = f'I see you\'re working on "{node_title}". ' if node_title else ""
    return (
        f"Hi! 👋 I'm your AI learning mentor for **{topic}**. {focus}"
        "Feel free to ask me anything about this topic - I'm here to help you "
        "understand concepts, answer questions, and guide your learning journey!"
    )


@dataclass
class ChatSession:
    """Conversation with the mentor about one topic; messages are only ever appended."""

    client: AIClient
    topic: str
    messages: List[Dict[str, str]] = field(default_factory=list)

    @classmethod
    def start(
        cls, client: AIClient, topic: str, node_title: Optional[str] = None
    ) -> "ChatSession":
        session = cls(client=client, topic=topic)
        session.messages.append(
            {"role": "assistant", "content": mentor_greeting(topic, node_title)}
        )
        return session

    async def send(
        self, message: str, on_delta: Optional[Callable[[str], None]] = None
    ) -> Optional[StreamError]:
        """
        Send a user message and stream the reply into a single assistant message.

        Returns the error when the stream fails; whatever arrived before the
        failure stays in the transcript.
        """
        history = [dict(m) for m in self.messages]
        self.messages.append({"role": "user", "content": message})

        reply: Optional[Dict[str, str]] = None
        failure: List[StreamError] = []

        def handle_delta(delta: str) -> None:
            nonlocal reply
            if reply is None:
                reply = {"role": "assistant", "content": ""}
                self.messages.append(reply)
            reply["content"] += delta
            if on_delta is not None:
                on_delta(delta)

        await self.client.stream_chat(
            self.topic,
            history,
            message,
            on_delta=handle_delta,
            on_done=lambda: None,
            on_error=failure.append,
        )

        if failure:
            logger.warning(f"Mentor reply failed: {failure[0].message}")
            return failure[0]
        return None

    @property
    def last_reply(self) -> Optional[str]:
        for message in reversed(self.messages):
            if message["role"] == "assistant":
                return message["content"]
        return None
