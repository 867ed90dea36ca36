"""Notification sinks for computed sessions and insights"""
import asyncio
import logging
from dataclasses import asdict, is_dataclass
from typing import Any, Dict, Optional, Set

import httpx

from focuslens.config.settings import settings
from focuslens.services.clock import Clock, system_clock
from focuslens.services.errors import ConfigError

logger = logging.getLogger(__name__)

def _payload(data: Any) -> Any:
    if is_dataclass(data):
        return asdict(data)
    if hasattr(data, "model_dump"):
        return data.model_dump()
    return data

class Notifier:
    """Fire-and-forget sink; callers never wait on or inspect a response"""

    def __init__(self, clock: Clock = system_clock):
        self.clock = clock

    def notify_session_ended(self, session) -> None:
        self.send("session_ended", session)

    def notify_focus_session_completed(self, focus_session) -> None:
        self.send("focus_session_completed", focus_session)

    def notify_productivity_threshold(self, warning) -> None:
        self.send("productivity_threshold", warning)

    def notify_daily_summary(self, summary) -> None:
        self.send("daily_summary", summary)

    def send(self, event: str, data: Any) -> None:
        raise NotImplementedError

    async def close(self) -> None:
        pass

class LoggingNotifier(Notifier):
    """Default sink: writes each event to the log"""

    def send(self, event: str, data: Any) -> None:
        logger.info(f"Event {event}: {_payload(data)}")

class WebhookNotifier(Notifier):
    """POSTs ``{"event", "timestamp", "data"}`` JSON to a webhook URL.

    Each delivery runs as a background task on the current event loop.
    Delivery failures are logged and never reach the caller.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
        clock: Clock = system_clock
    ):
        super().__init__(clock)
        self.url = url or settings.WEBHOOK_URL
        if not self.url:
            raise ConfigError("Webhook URL is not configured")
        self.client = client or httpx.AsyncClient(
            timeout=timeout if timeout is not None else settings.WEBHOOK_TIMEOUT_SECONDS
        )
        self._pending: Set[asyncio.Task] = set()

    def send(self, event: str, data: Any) -> None:
        body = {"event": event, "timestamp": self.clock(), "data": _payload(data)}
        try:
            task = asyncio.get_running_loop().create_task(self._deliver(body))
        except RuntimeError:
            logger.warning(f"No running event loop, dropping {event} notification")
            return
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, body: Dict[str, Any]) -> bool:
        try:
            response = await self.client.post(self.url, json=body)
            response.raise_for_status()
            logger.debug(f"Delivered {body['event']} to webhook")
            return True
        except httpx.HTTPError as e:
            logger.warning(f"Webhook delivery of {body['event']} failed: {e}")
            return False

    async def flush(self) -> None:
        """Wait for in-flight deliveries"""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def close(self) -> None:
        await self.flush()
        await self.client.aclose()

def create_notifier() -> Notifier:
    """Webhook sink when WEBHOOK_URL is configured, log sink otherwise"""
    if settings.WEBHOOK_URL:
        return WebhookNotifier()
    return LoggingNotifier()
