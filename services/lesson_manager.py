from telegram import Bot, InlineKeyboardButton, InlineKeyboardMarkup
from telegram.constants import ParseMode
from telegram.error import TelegramError
from typing import List, Optional
from config.settings import Config
from services.callback_data import (
    AnswerChoice, AnswerQuestion, OpenDay, RevealSection, ShowHelp, ShowProgress, encode_callback_data
)
from services.content_loader import ContentLoader, Day, PresentationStep, Section
import logging


logger = logging.getLogger(__name__)

WELCOME_TEXT = """🎄 Willkommen beim Adventskalender Deutsch! 🎅
24 Tage voller Wörter, Aufgaben und Weihnachtsfreude!

👇 Drück auf den Knopf, um Tag 1 zu öffnen!"""

DAYS_PER_ROW = 4


def _button(label: str, action) -> InlineKeyboardButton:
    return InlineKeyboardButton(label, callback_data=encode_callback_data(action))


def build_start_keyboard(total_days: int = Config.TOTAL_DAYS) -> InlineKeyboardMarkup:
    """Door buttons for every day, four per row, then progress and help."""
    rows = []
    for day_number in range(1, total_days + 1):
        if (day_number - 1) % DAYS_PER_ROW == 0:
            rows.append([])
        rows[-1].append(_button(f"🚪 Tag {day_number}", OpenDay(day_number)))
    rows.append([
        _button("📘 Fortschritt", ShowProgress()),
        _button("📋 Hilfe", ShowHelp())
    ])
    return InlineKeyboardMarkup(rows)


def build_menu_keyboard(day: Day, step: PresentationStep) -> Optional[InlineKeyboardMarkup]:
    rows = [
        [_button(button['label'], RevealSection(day.day_number, button['section']))]
        for button in step.buttons
    ]
    if step.next_day and day.day_number < Config.TOTAL_DAYS:
        next_day = day.day_number + 1
        rows.append([_button(f"👉 Weiter zu Tag {next_day}", OpenDay(next_day))])
    return InlineKeyboardMarkup(rows) if rows else None


def build_question_keyboard(day_number: int, section: Section, index: int) -> InlineKeyboardMarkup:
    question = section.questions[index]
    return InlineKeyboardMarkup([
        [_button(option, AnswerQuestion(day_number, section.key, index, option_index))]
        for option_index, option in enumerate(question.options)
    ])


def build_choice_keyboard(day_number: int, section: Section, index: int) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([[
        _button(label, AnswerChoice(day_number, section.key, index, label))
        for label in section.choices
    ]])


def format_section(section: Section) -> str:
    if section.title:
        return f"*{section.title}*\n\n{section.text}"
    return section.text


def format_text_step(day: Day, step: PresentationStep) -> str:
    if step.section:
        body = format_section(day.sections[step.section])
    else:
        body = step.text or ''
    if step.heading:
        heading = f"🎄 TAG {day.day_number}"
        if day.title:
            heading = f"{heading} – {day.title}"
        return f"*{heading}*\n\n{body}"
    return body


class LessonService:
    """Renders days and their sections as a sequence of Telegram messages."""

    def __init__(self, content: ContentLoader):
        """
        Args:
            content: Catalog used to resolve media paths
        """
        self.content = content

    async def _send_text(self, bot: Bot, chat_id: int, text: str, reply_markup=None) -> bool:
        if not text:
            return False
        try:
            await bot.send_message(
                chat_id=chat_id,
                text=text,
                parse_mode=ParseMode.MARKDOWN,
                disable_web_page_preview=True,
                reply_markup=reply_markup
            )
            return True
        except TelegramError as e:
            logger.error(f"Failed to send message to {chat_id}: {e}")
            return False

    async def _send_media(self, bot: Bot, chat_id: int, kind: str, relative_path: Optional[str]) -> bool:
        path = self.content.resolve_media(relative_path)
        if path is None:
            return False
        try:
            with open(path, 'rb') as media:
                if kind == 'video':
                    await bot.send_video(chat_id=chat_id, video=media)
                else:
                    await bot.send_photo(chat_id=chat_id, photo=media)
            return True
        except (TelegramError, OSError) as e:
            logger.error(f"Failed to send {kind} {path} to {chat_id}: {e}")
            return False

    async def send_day(self, bot: Bot, chat_id: int, day: Day) -> None:
        """Play a day's presentation steps in order. A failing step doesn't stop the rest."""
        for step in day.steps:
            if step.type in ('image', 'video'):
                await self._send_media(bot, chat_id, step.type, step.path)
            elif step.type == 'text':
                await self._send_text(bot, chat_id, format_text_step(day, step))
            elif step.type == 'quiz':
                await self.send_section(bot, chat_id, day, day.sections[step.section])
            elif step.type == 'menu':
                keyboard = build_menu_keyboard(day, step)
                if keyboard:
                    await self._send_text(bot, chat_id, step.prompt, reply_markup=keyboard)

    async def send_section(self, bot: Bot, chat_id: int, day: Day, section: Section) -> None:
        if section.kind == 'quiz':
            await self._send_text(bot, chat_id, self._quiz_intro(section))
            for index, question in enumerate(section.questions):
                await self._send_text(
                    bot, chat_id,
                    f"*{index + 1}. {question.q}*",
                    reply_markup=build_question_keyboard(day.day_number, section, index)
                )
        elif section.kind == 'choice':
            await self._send_text(bot, chat_id, self._quiz_intro(section))
            for index, item in enumerate(section.items):
                await self._send_text(
                    bot, chat_id,
                    f"*{index + 1}. {item}*",
                    reply_markup=build_choice_keyboard(day.day_number, section, index)
                )
        else:
            await self._send_text(bot, chat_id, format_section(section))
            if section.file_path:
                if not await self._send_media(bot, chat_id, 'image', section.file_path):
                    await self._send_text(bot, chat_id, "⚠️ Fehler: Datei nicht gefunden.")

    @staticmethod
    def _quiz_intro(section: Section) -> str:
        parts: List[str] = []
        if section.title:
            parts.append(f"*{section.title}*")
        if section.intro:
            parts.append(section.intro)
        return "\n\n".join(parts)
