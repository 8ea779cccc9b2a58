"""Tests for rendering days and sections."""

import asyncio
import json
from unittest.mock import AsyncMock

from telegram.error import TelegramError

from services.content_loader import ContentLoader, PresentationStep
from services.lesson_manager import LessonService, build_menu_keyboard, format_text_step


def _callbacks(markup):
    return [button.callback_data for row in markup.inline_keyboard for button in row]


def test_menu_adds_next_day_button(content):
    day = content.get_day(1)
    markup = build_menu_keyboard(day, day.steps[-1])
    assert _callbacks(markup) == ["sec_1_vocab", "sec_1_reading", "open_2"]


def test_last_day_has_no_next_button(content):
    day = content.get_day(24)
    assert _callbacks(build_menu_keyboard(day, day.steps[-1])) == ["sec_24_main"]


def test_menu_can_drop_next_day(content):
    day = content.get_day(1)
    step = PresentationStep(type="menu", next_day=False)
    assert build_menu_keyboard(day, step) is None


def test_heading_prefixes_day_number(content):
    day = content.get_day(5)
    assert format_text_step(day, day.steps[0]) == "*🎄 TAG 5 – Nikolaus*\n\n*Tag 5*\n\nDer Stiefel."


def test_heading_without_title_shows_day_number_only(content):
    day = content.get_day(5)
    day.title = ""
    assert format_text_step(day, day.steps[0]).startswith("*🎄 TAG 5*\n\n")


def test_day_steps_run_in_order_with_media(content, tmp_path):
    (tmp_path / "media").mkdir()
    (tmp_path / "media" / "day1.jpg").write_bytes(b"jpg")
    bot = AsyncMock()

    asyncio.run(LessonService(content).send_day(bot, 2, content.get_day(1)))

    bot.send_photo.assert_awaited_once()
    texts = [call.kwargs["text"] for call in bot.send_message.call_args_list]
    assert texts == ["*Tag 1*\n\nDie erste Kerze.", "👇 Wähle weiter:"]


def test_missing_media_does_not_stop_the_day(content):
    bot = AsyncMock()
    asyncio.run(LessonService(content).send_day(bot, 2, content.get_day(1)))
    bot.send_photo.assert_not_called()
    assert bot.send_message.await_count == 2


def test_failed_message_is_logged_and_rest_continues(content):
    bot = AsyncMock()
    bot.send_message.side_effect = [TelegramError("Bad Request"), None]
    asyncio.run(LessonService(content).send_day(bot, 2, content.get_day(1)))
    assert bot.send_message.await_count == 2


def test_choice_section_offers_both_labels(content):
    bot = AsyncMock()
    day = content.get_day(2)
    asyncio.run(LessonService(content).send_section(bot, 2, day, day.section("exercise")))
    markup = bot.send_message.call_args_list[-1].kwargs["reply_markup"]
    assert _callbacks(markup) == ["pick_2_exercise_0_auf", "pick_2_exercise_0_über"]


def test_text_section_with_missing_image_warns_user(tmp_path):
    path = tmp_path / "days.json"
    path.write_text(json.dumps({
        "11": {"sections": {"vocab": {"title": "Liste", "text": "Schreibe.", "file_path": "media/x.png"}}}
    }), encoding="utf-8")
    content = ContentLoader(content_file=path, media_dir=tmp_path)
    bot = AsyncMock()
    day = content.get_day(11)

    asyncio.run(LessonService(content).send_section(bot, 11, day, day.section("vocab")))

    texts = [call.kwargs["text"] for call in bot.send_message.call_args_list]
    assert texts == ["*Liste*\n\nSchreibe.", "⚠️ Fehler: Datei nicht gefunden."]
