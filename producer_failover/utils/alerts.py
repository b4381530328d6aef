"""
Notification sinks for producer failover events.

Every sink is best-effort: delivery failures are logged and swallowed so the
monitoring loop never sees them.
"""

import asyncio
from typing import Any, Dict, List, Optional, Protocol
import aiohttp
import requests
import structlog

from producer_failover.models.config import FailoverConfig

logger = structlog.get_logger(__name__)


class AlertSink(Protocol):
    """Anything that can deliver a human readable notification."""

    def notify(self, message: str) -> None:
        ...


class NullAlertSink:
    """Sink used when no notification channel is configured."""

    def notify(self, message: str) -> None:
        logger.debug("No alert sink configured, dropping message", message=message)


class SlackWebhook:
    """Posts messages to a Slack incoming webhook."""

    def __init__(self, url: Optional[str], channel: Optional[str] = None,
                 chain: Optional[str] = None, timeout: float = 10.0):
        self.url = url
        self.channel = channel
        self.chain = chain
        self.timeout = timeout
        self.session = requests.Session()

    def build_payload(self, message: str) -> Dict[str, Any]:
        payload = {"text": f"[{self.chain}] {message}"}
        if self.channel:
            payload["channel"] = self.channel
        return payload

    def notify(self, message: str) -> None:
        if not self.url:
            return
        try:
            response = self.session.post(
                self.url,
                json=self.build_payload(message),
                timeout=self.timeout
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.warning("Slack webhook delivery failed", error=str(e))


class TelegramAlerter:
    """
    Sends messages to a Telegram chat through the Bot API.

    The HTTP call is async (aiohttp); ``notify`` drives it to completion so the
    synchronous poller can use it like any other sink.
    """

    BASE_URL = "https://api.telegram.org/bot{token}/{method}"

    def __init__(self, bot_token: str, chat_id: str, chain: Optional[str] = None,
                 timeout: float = 10.0):
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.chain = chain
        self.timeout = timeout

        logger.info("TelegramAlerter initialized", chat_id=chat_id[:5] + "***")

    async def _send_request(self, method: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Send request to Telegram Bot API."""
        url = self.BASE_URL.format(token=self.bot_token, method=method)
        timeout = aiohttp.ClientTimeout(total=self.timeout)

        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.post(url, json=data) as response:
                result = await response.json()

        if not result.get('ok'):
            logger.error("Telegram API error",
                         error=result.get('description'),
                         error_code=result.get('error_code'))
        return result

    async def send_message(self, text: str) -> bool:
        """Send a plain text message to the configured chat."""
        data = {
            "chat_id": self.chat_id,
            "text": f"[{self.chain}] {text}" if self.chain else text,
            "disable_web_page_preview": True
        }
        result = await self._send_request("sendMessage", data)
        return result.get("ok", False)

    def notify(self, message: str) -> None:
        try:
            asyncio.run(self.send_message(message))
        except asyncio.TimeoutError:
            logger.warning("Telegram request timeout")
        except Exception as e:
            logger.warning("Telegram delivery failed", error=str(e))


class CompositeAlertSink:
    """Fans a message out to several sinks."""

    def __init__(self, sinks: List[AlertSink]):
        self.sinks = list(sinks)

    def notify(self, message: str) -> None:
        logger.debug("Sending notification", message=message, sinks=len(self.sinks))
        for sink in self.sinks:
            try:
                sink.notify(message)
            except Exception as e:
                logger.warning("Alert sink raised", sink=type(sink).__name__, error=str(e))


def build_alert_sink(config: FailoverConfig) -> AlertSink:
    """Create the sink described by the configuration."""
    sinks: List[AlertSink] = []

    if config.slack_webhook_url:
        sinks.append(SlackWebhook(
            config.slack_webhook_url,
            channel=config.slack_channel,
            chain=config.chain_label,
            timeout=config.rpc_timeout,
        ))

    if config.telegram_bot_token and config.telegram_chat_id:
        sinks.append(TelegramAlerter(
            config.telegram_bot_token,
            config.telegram_chat_id,
            chain=config.chain_label,
            timeout=config.rpc_timeout,
        ))

    if not sinks:
        logger.warning("No notification channel configured - alerts disabled")
        return NullAlertSink()

    return CompositeAlertSink(sinks)
