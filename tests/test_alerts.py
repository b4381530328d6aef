"""Unit tests for notification sinks."""

import asyncio
import pytest
import requests
from unittest.mock import Mock, patch, AsyncMock

from producer_failover.utils.alerts import (
    SlackWebhook,
    TelegramAlerter,
    CompositeAlertSink,
    NullAlertSink,
    build_alert_sink,
)

from conftest import make_config


class TestSlackWebhook:
    """Tests for the Slack webhook sink."""

    def test_payload_prefixes_chain(self):
        sink = SlackWebhook("https://hooks.slack.test/T/B/x", chain="wax")

        assert sink.build_payload("producer missed a round") == {"text": "[wax] producer missed a round"}

    def test_payload_channel_override(self):
        sink = SlackWebhook("https://hooks.slack.test/T/B/x", channel="#bp-alerts", chain="eos")

        assert sink.build_payload("hi")["channel"] == "#bp-alerts"

    def test_notify_posts(self):
        sink = SlackWebhook("https://hooks.slack.test/T/B/x", chain="eos", timeout=5)
        with patch.object(sink.session, "post") as post:
            sink.notify("hello")

        post.assert_called_once_with(
            "https://hooks.slack.test/T/B/x",
            json={"text": "[eos] hello"},
            timeout=5
        )

    def test_notify_without_url_is_noop(self):
        sink = SlackWebhook(None)
        with patch.object(sink.session, "post") as post:
            sink.notify("hello")

        post.assert_not_called()

    def test_delivery_failure_swallowed(self):
        """Test a failing webhook never raises into the poller."""
        sink = SlackWebhook("https://hooks.slack.test/T/B/x", chain="eos")
        with patch.object(sink.session, "post", side_effect=requests.ConnectionError("down")):
            sink.notify("hello")


class TestTelegramAlerter:
    """Tests for the Telegram sink."""

    @pytest.fixture
    def alerter(self):
        return TelegramAlerter("123:ABC", "-100123456", chain="eos")

    def test_notify_sends_message(self, alerter):
        with patch.object(alerter, "_send_request", new_callable=AsyncMock) as send:
            send.return_value = {"ok": True}
            alerter.notify("producer recovered")

        method, data = send.call_args[0]
        assert method == "sendMessage"
        assert data["chat_id"] == "-100123456"
        assert data["text"] == "[eos] producer recovered"

    def test_notify_swallows_errors(self, alerter):
        with patch.object(alerter, "_send_request", new_callable=AsyncMock) as send:
            send.side_effect = RuntimeError("network down")
            alerter.notify("hello")

    def test_api_error_reported_as_failure(self, alerter):
        with patch.object(alerter, "_send_request", new_callable=AsyncMock) as send:
            send.return_value = {"ok": False, "description": "chat not found"}

            assert asyncio.run(alerter.send_message("hello")) is False


class TestCompositeAlertSink:
    """Tests for fan-out delivery."""

    def test_every_sink_receives_message(self):
        first, second = Mock(), Mock()

        CompositeAlertSink([first, second]).notify("msg")

        first.notify.assert_called_once_with("msg")
        second.notify.assert_called_once_with("msg")

    def test_failing_sink_does_not_block_others(self):
        broken, healthy = Mock(), Mock()
        broken.notify.side_effect = RuntimeError("boom")

        CompositeAlertSink([broken, healthy]).notify("msg")

        healthy.notify.assert_called_once_with("msg")


class TestBuildAlertSink:
    """Tests for sink construction from configuration."""

    def test_nothing_configured(self):
        assert isinstance(build_alert_sink(make_config()), NullAlertSink)

    def test_slack_only(self):
        sink = build_alert_sink(make_config(slack_webhook_url="https://hooks.slack.test/x", chain_label="wax"))

        assert isinstance(sink, CompositeAlertSink)
        assert len(sink.sinks) == 1
        assert isinstance(sink.sinks[0], SlackWebhook)
        assert sink.sinks[0].chain == "wax"

    def test_telegram_needs_token_and_chat(self):
        sink = build_alert_sink(make_config(telegram_bot_token="123:ABC"))
        assert isinstance(sink, NullAlertSink)

        sink = build_alert_sink(make_config(
            slack_webhook_url="https://hooks.slack.test/x",
            telegram_bot_token="123:ABC",
            telegram_chat_id="-100123456",
        ))
        assert [type(s) for s in sink.sinks] == [SlackWebhook, TelegramAlerter]
