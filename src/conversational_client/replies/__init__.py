from conversational_client.replies.base import ReplyCancelledError, ReplyResult, ReplyService
from conversational_client.replies.llm import LLMReplyService

__all__ = [
    "LLMReplyService",
    "ReplyCancelledError",
    "ReplyResult",
    "ReplyService",
]
