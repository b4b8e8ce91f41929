from bloom_client.chat import ChatSession
from bloom_client.dispatcher import AIClient
from bloom_client.errors import RequestError, StreamError
from bloom_client.sse import DecoderState, SSEDeltaDecoder

__all__ = [
    "AIClient",
    "ChatSession",
    "DecoderState",
    "RequestError",
    "SSEDeltaDecoder",
    "StreamError",
]
