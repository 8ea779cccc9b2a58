"""Tests for handler registration and the web routes."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock

from telegram.ext import Application, CallbackQueryHandler, CommandHandler, TypeHandler

from services.application import create_app, register_handlers, register_services


def _application():
    return Application.builder().token("123456:TEST-token").build()


def test_access_gate_runs_before_everything(content, gate, fake_db):
    application = _application()
    register_services(application, content, gate, fake_db)
    register_handlers(application)

    gate_handlers = application.handlers[-1]
    assert len(gate_handlers) == 1
    assert isinstance(gate_handlers[0], TypeHandler)

    commands = {
        command
        for handler in application.handlers[0] if isinstance(handler, CommandHandler)
        for command in handler.commands
    }
    assert commands == {"start", "help", "progress", "adduser", "adminhelp"}
    assert any(isinstance(h, CallbackQueryHandler) for h in application.handlers[0])
    assert application.bot_data["access_gate"] is gate


def test_status_route():
    app = create_app(SimpleNamespace(bot=object(), process_update=AsyncMock()))

    async def _run():
        response = await app.test_client().get("/status")
        return response.status_code, await response.get_data(as_text=True)

    assert asyncio.run(_run()) == (200, "Bot is running!")


def test_webhook_rejects_non_json():
    application = SimpleNamespace(bot=object(), process_update=AsyncMock())
    app = create_app(application)

    async def _run():
        response = await app.test_client().post("/webhook", data="hello", headers={"content-type": "text/plain"})
        return response.status_code

    assert asyncio.run(_run()) == 400
    application.process_update.assert_not_called()
