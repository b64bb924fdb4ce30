"""Tests for the webhook app, Lambda handlers and polling runner."""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from api.channels.telegram import TelegramAPIError, TelegramUpdate
from api.lambda_handler import create_main_handler, create_proxy_handler
from api.main import app
from api.polling import PollingRunner
from api.services import Services, get_services
from config.settings import Settings
from llm.orchestrator import BotConfigurationError, ProcessResult, ProcessStatus

from conftest import make_message


# ── Webhook ───────────────────────────────────────────

@pytest.fixture
def ready_services():
    services = get_services()
    saved = (services.bot, services.channel, services._initialized)
    services.bot = MagicMock()
    services.bot.calls = []

    async def process_message(message, callback=None):
        services.bot.calls.append((message, callback))
        return ProcessResult(ProcessStatus.CONTINUATION_SENT)

    services.bot.process_message = process_message
    services.channel = MagicMock()
    services._initialized = True
    yield services
    services.bot, services.channel, services._initialized = saved


class TestWebhook:
    def test_root(self):
        resp = TestClient(app).get("/")
        assert resp.status_code == 200
        assert resp.json()["service"] == "Conversation Bot"

    def test_acknowledges_and_processes(self, ready_services):
        message = make_message().model_dump(by_alias=True, exclude_none=True)

        resp = TestClient(app).post("/webhook", json={"update_id": 1, "message": message})

        assert resp.status_code == 200
        assert resp.json() == {"status": "Acknowledged"}
        (received, callback), = ready_services.bot.calls
        assert received["message_id"] == message["message_id"]
        assert callback is ready_services.result_callback

    def test_update_without_message_is_ignored(self, ready_services):
        resp = TestClient(app).post("/webhook", json={"update_id": 2, "edited_message": {}})
        assert resp.json() == {"status": "ignored"}
        assert ready_services.bot.calls == []

    def test_health(self, ready_services):
        resp = TestClient(app).get("/health")
        assert resp.json()["status"] == "healthy"


class TestServices:
    def test_missing_token_is_fatal(self):
        with pytest.raises(BotConfigurationError):
            Services().initialize(Settings(telegram_bot_token="", allowed_chat_id="1"))

    def test_missing_allow_list_is_fatal(self):
        with pytest.raises(BotConfigurationError):
            Services().initialize(Settings(telegram_bot_token="t", allowed_chat_id="", openai_api_key="k"))

    def test_builds_bot_from_settings(self):
        services = Services()
        services.initialize(Settings(
            telegram_bot_token="t",
            allowed_chat_id="-100, -200",
            llm_provider="openai",
            openai_api_key="k",
            bot_command="/book",
        ))
        assert services.is_ready
        assert services.bot.allowed_chats == ["-100", "-200"]
        assert services.bot.command == "/book"


# ── Lambda ────────────────────────────────────────────

class TestMainHandler:
    def test_processes_message(self):
        process = AsyncMock()
        handler = create_main_handler(process)
        event = {"body": json.dumps({"update_id": 1, "message": {"message_id": 1, "text": "hi"}})}

        resp = handler(event, None)

        assert resp == {"statusCode": 200, "body": "Completed"}
        process.assert_awaited_once_with({"message_id": 1, "text": "hi"}, event)

    def test_no_message(self):
        process = AsyncMock()
        resp = create_main_handler(process)({"body": json.dumps({"update_id": 1})}, None)
        assert resp["body"] == "No message"
        process.assert_not_awaited()

    def test_malformed_body(self):
        resp = create_main_handler(AsyncMock())({"body": "{not json"}, None)
        assert resp == {"statusCode": 200, "body": "No message"}

    def test_processing_error_still_acknowledges(self):
        process = AsyncMock(side_effect=RuntimeError("boom"))
        resp = create_main_handler(process)({"body": json.dumps({"message": {"text": "hi"}})}, None)
        assert resp == {"statusCode": 200, "body": "Error"}


class TestProxyHandler:
    def test_fires_async_invocation(self):
        client = MagicMock()
        event = {"body": "{}"}

        resp = create_proxy_handler("bot-main", lambda_client=client)(event, None)

        assert resp == {"statusCode": 200, "body": ""}
        client.invoke.assert_called_once_with(
            FunctionName="bot-main",
            InvocationType="Event",
            Payload=json.dumps(event),
        )

    def test_missing_target(self):
        resp = create_proxy_handler(None, lambda_client=MagicMock())({}, None)
        assert resp == {"statusCode": 500, "body": "Lambda name not found"}

    def test_invoke_failure(self):
        client = MagicMock()
        client.invoke.side_effect = RuntimeError("AccessDenied")
        resp = create_proxy_handler("bot-main", lambda_client=client)({}, None)
        assert resp["statusCode"] == 500
        assert "AccessDenied" in resp["body"]


# ── Polling ───────────────────────────────────────────

class TestPollingRunner:
    @pytest.mark.asyncio
    async def test_dispatches_each_message_and_advances_offset(self):
        bot = MagicMock()
        bot.process_message = AsyncMock()
        channel = MagicMock()
        channel.get_updates = AsyncMock(return_value=[
            TelegramUpdate.model_validate({"update_id": 5, "message": {"message_id": 1, "chat": {"id": 1}, "text": "a"}}),
            TelegramUpdate.model_validate({"update_id": 6}),
            TelegramUpdate.model_validate({"update_id": 7, "message": {"message_id": 2, "chat": {"id": 1}, "text": "b"}}),
        ])
        callback = MagicMock()
        runner = PollingRunner(bot, channel, callback)

        dispatched = await runner.poll_once()
        await asyncio.gather(*list(runner._tasks))

        assert dispatched == 2
        assert bot.process_message.await_count == 2
        assert bot.process_message.await_args.args[1] is callback

        channel.get_updates.return_value = []
        await runner.poll_once()
        assert channel.get_updates.await_args.kwargs["offset"] == 8

    @pytest.mark.asyncio
    async def test_run_retries_then_stops(self):
        bot = MagicMock()
        channel = MagicMock()
        channel.delete_webhook = AsyncMock()
        runner = PollingRunner(bot, channel, retry_delay=0)

        async def fail_then_stop(**kwargs):
            runner.stop()
            raise TelegramAPIError("network")

        channel.get_updates = AsyncMock(side_effect=fail_then_stop)

        await runner.run()

        channel.delete_webhook.assert_awaited_once()
        channel.get_updates.assert_awaited_once()
