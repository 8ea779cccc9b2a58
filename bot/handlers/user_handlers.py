from telegram import Update
from telegram.error import TelegramError
from telegram.ext import ApplicationHandlerStop, ContextTypes
from config.settings import Config
from services.access import AccessGate
from services.callback_data import (
    AnswerChoice, AnswerQuestion, OpenDay, RevealSection, ShowHelp, ShowProgress, parse_callback_data
)
from services.database import UserManager
from services.lesson_manager import LessonService, WELCOME_TEXT, build_start_keyboard
from services.progress_tracker import OpenStatus, ProgressTracker
from services.quiz import QuizDataError, evaluate_answer, evaluate_choice
import logging


logger = logging.getLogger(__name__) # Get logger instance

ACCESS_DENIED_TEXT = "🚫 Du hast keinen Zugang zu diesem Bot. Bitte wende dich an den Administrator."
NOT_FOUND_TEXT = "Inhalt nicht gefunden."
LOCKED_TEXT = "Dieser Tag ist noch gesperrt."
DATA_ERROR_TEXT = "Fehler."
ALERT_LIMIT = 200


def help_text() -> str:
    return f"📋 Hilfe:\n\nBei Fragen: {Config.SUPPORT_CONTACT}"


async def _safe_answer(query, text: str = None, show_alert: bool = False) -> None:
    """Acknowledge a button press. Stale queries are not worth failing over."""
    if text and len(text) > ALERT_LIMIT:
        text = text[:ALERT_LIMIT - 1] + "…"
    try:
        await query.answer(text, show_alert=show_alert)
    except TelegramError as e:
        logger.warning(f"Could not answer callback query: {e}")


async def access_gate(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Runs before every other handler. Drops updates from unknown users, records everyone else."""
    user = update.effective_user
    if user is None:
        raise ApplicationHandlerStop

    gate: AccessGate = context.bot_data["access_gate"]
    if gate.is_allowed(user.id, user.username):
        user_manager: UserManager = context.bot_data["user_manager"]
        await user_manager.ensure_user(user)
        return

    logger.info(f"Access denied for user {user.id} (@{user.username})")
    try:
        if update.callback_query:
            await _safe_answer(update.callback_query)
        if update.effective_chat:
            await context.bot.send_message(update.effective_chat.id, ACCESS_DENIED_TEXT)
    except TelegramError as e:
        logger.error(f"Access deny reply failed: {e}")
    raise ApplicationHandlerStop


async def start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Show the calendar doors."""
    await update.message.reply_text(
        WELCOME_TEXT,
        parse_mode='Markdown',
        reply_markup=build_start_keyboard()
    )


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await update.effective_message.reply_text(help_text())


async def progress_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Send the list of opened days on /progress"""
    tracker: ProgressTracker = context.bot_data["progress_tracker"]
    text = await tracker.get_progress_text(update.effective_user.id)
    await update.effective_message.reply_text(text)


async def handle_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Route a button press to the matching action."""
    query = update.callback_query
    action = parse_callback_data(query.data)
    logger.info(f"User {update.effective_user.id} clicked: {query.data}")

    if action is None:
        await _safe_answer(query, DATA_ERROR_TEXT, show_alert=True)
        return

    if isinstance(action, OpenDay):
        await _safe_answer(query)
        await open_day(update, context, action.day)
    elif isinstance(action, RevealSection):
        await _safe_answer(query)
        await reveal_section(update, context, action)
    elif isinstance(action, AnswerQuestion):
        await answer_question(update, context, action)
    elif isinstance(action, AnswerChoice):
        await answer_choice(update, context, action)
    elif isinstance(action, ShowProgress):
        await _safe_answer(query)
        await progress_command(update, context)
    elif isinstance(action, ShowHelp):
        await _safe_answer(query)
        await help_command(update, context)


async def open_day(update: Update, context: ContextTypes.DEFAULT_TYPE, day_number: int) -> None:
    chat_id = update.effective_chat.id
    tracker: ProgressTracker = context.bot_data["progress_tracker"]
    lesson_service: LessonService = context.bot_data["lesson_service"]

    result = await tracker.open_day(update.effective_user.id, day_number)

    if result.status is OpenStatus.NOT_FOUND:
        await context.bot.send_message(chat_id, NOT_FOUND_TEXT)
        return
    if result.status is OpenStatus.LOCKED:
        await context.bot.send_message(chat_id, LOCKED_TEXT)
        return

    await lesson_service.send_day(context.bot, chat_id, result.day)


async def reveal_section(update: Update, context: ContextTypes.DEFAULT_TYPE, action: RevealSection) -> None:
    chat_id = update.effective_chat.id
    content = context.bot_data["content"]
    lesson_service: LessonService = context.bot_data["lesson_service"]

    day = content.get_day(action.day)
    section = day.section(action.section) if day else None
    if section is None:
        logger.warning(f"Section {action.section} of day {action.day} not found")
        await context.bot.send_message(chat_id, NOT_FOUND_TEXT)
        return

    await lesson_service.send_section(context.bot, chat_id, day, section)


async def answer_question(update: Update, context: ContextTypes.DEFAULT_TYPE, action: AnswerQuestion) -> None:
    content = context.bot_data["content"]
    section = content.get_section(action.day, action.section)
    question = section.question(action.question) if section else None

    try:
        result = evaluate_answer(question, action.option)
    except QuizDataError:
        logger.warning(f"Stale quiz answer: {update.callback_query.data}")
        await _safe_answer(update.callback_query, DATA_ERROR_TEXT, show_alert=True)
        return

    await _safe_answer(update.callback_query, result.feedback, show_alert=True)


async def answer_choice(update: Update, context: ContextTypes.DEFAULT_TYPE, action: AnswerChoice) -> None:
    content = context.bot_data["content"]
    section = content.get_section(action.day, action.section)
    correct_label = section.solution(action.item) if section else None

    try:
        result = evaluate_choice(correct_label, action.label)
    except QuizDataError:
        logger.warning(f"Stale exercise answer: {update.callback_query.data}")
        await _safe_answer(update.callback_query, DATA_ERROR_TEXT, show_alert=True)
        return

    await _safe_answer(update.callback_query, result.feedback, show_alert=True)
