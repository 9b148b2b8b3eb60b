"""
Cooperative cancellation for in-flight reply requests.

A 'CancellationToken' is created for every pending reply and handed to the
reply service alongside the request. Calling 'cancel()' only raises a flag and
wakes any waiter: the service may stop early or ignore it, but the controller
always treats a cancelled token as final, whatever the service eventually
returns.
"""

import asyncio

from conversational_client.replies.base import ReplyCancelledError


class CancellationToken:
    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str | None = None) -> None:
        if self._event.is_set():
            return
        self.reason = reason
        self._event.set()

    async def wait(self) -> None:
        """Block until the token is cancelled."""
        await self._event.wait()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise ReplyCancelledError(self.reason)
