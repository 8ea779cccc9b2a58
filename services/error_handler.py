from telegram import Update
from telegram.error import TelegramError
from telegram.ext import CallbackContext
import logging


logger = logging.getLogger(__name__)

GENERIC_ERROR_TEXT = "Entschuldigung, etwas ist schiefgelaufen. Bitte versuche es später noch einmal."


async def error_handler(update: object, context: CallbackContext):
    """Log errors raised while handling an update and tell the user something went wrong."""
    logger.error(f'Update "{update}" caused error "{context.error}"', exc_info=context.error)
    if not isinstance(update, Update):
        return
    try:
        if update.effective_message:
            await update.effective_message.reply_text(GENERIC_ERROR_TEXT)
        elif update.effective_chat:
            await context.bot.send_message(update.effective_chat.id, GENERIC_ERROR_TEXT)
    except TelegramError as e:
        logger.error(f"Error in error handler: {e}", exc_info=True)
