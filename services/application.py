from quart import Quart
from services.api import setup_routes
from telegram.ext import Application, CommandHandler, CallbackQueryHandler, TypeHandler
from telegram import BotCommand, Update
from bot.handlers.user_handlers import (
    access_gate, start, help_command, progress_command, handle_callback
)
from bot.handlers.admin_handlers import adminhelp_command, adduser_command
from services.access import AccessGate, JsonAllowListStore
from services.content_loader import ContentLoader, content_loader
from services.database import DayManager, ProgressManager, UserManager
from services.error_handler import error_handler
from services.lesson_manager import LessonService
from services.progress_tracker import ProgressTracker
import logging
import validators
from config.settings import Config

logger = logging.getLogger(__name__)


def register_services(application: Application, content: ContentLoader = content_loader,
                      gate: AccessGate = None, database=None) -> None:
    """Put shared collaborators into bot_data so handlers can reach them."""
    progress_manager = ProgressManager(database)
    day_manager = DayManager(database)
    application.bot_data.update({
        "content": content,
        "access_gate": gate or AccessGate(JsonAllowListStore()),
        "user_manager": UserManager(database),
        "progress_tracker": ProgressTracker(content, progress_manager, day_manager),
        "lesson_service": LessonService(content),
    })


def register_handlers(application: Application) -> None:
    # Access check runs first and stops unauthorised updates
    application.add_handler(TypeHandler(Update, access_gate), group=-1)

    application.add_handler(CommandHandler("start", start))
    application.add_handler(CommandHandler("help", help_command))
    application.add_handler(CommandHandler("progress", progress_command))

    # Admin handlers
    application.add_handler(CommandHandler("adduser", adduser_command))
    application.add_handler(CommandHandler("adminhelp", adminhelp_command))

    application.add_handler(CallbackQueryHandler(handle_callback))
    application.add_error_handler(error_handler)


async def initialize_application(database=None) -> Application:
    """
    Build and initialize the Telegram bot application.

    Registers services and handlers, sets the bot commands, and configures the
    webhook if a webhook URL is provided.

    Returns:
        Application: The initialized bot application.
    """
    if not Config.BOT_TOKEN:
        raise ValueError("TELEGRAM_BOT_TOKEN environment variable is not set.")
    application = Application.builder().token(Config.BOT_TOKEN).build()

    register_services(application, database=database)
    register_handlers(application)

    await application.initialize()

    await application.bot.set_my_commands([
        BotCommand("start", "Adventskalender öffnen"),
        BotCommand("progress", "Geöffnete Tage anzeigen"),
        BotCommand("help", "Hilfe anzeigen")
    ])

    if Config.WEBHOOK_URL:
        if validators.url(Config.WEBHOOK_URL):
            await application.bot.set_webhook(Config.WEBHOOK_URL)
            logger.info(f"Webhook set to {Config.WEBHOOK_URL}")
        else:
            raise ValueError(f"Invalid WEBHOOK_URL provided: {Config.WEBHOOK_URL}")
    else:
        logger.warning("WEBHOOK_URL environment variable not set. Using long polling.")
    return application


def create_app(application: Application) -> Quart:
    """Initialize and configure the Quart application"""
    app = Quart(__name__)
    setup_routes(app, application)
    return app
