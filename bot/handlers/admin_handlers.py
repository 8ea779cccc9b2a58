from telegram import Update
from telegram.ext import ContextTypes
from services.access import AccessGate, normalize_handle
import logging


logger = logging.getLogger(__name__)

ADMIN_ONLY_TEXT = "❌ Only an administrator can add users."
ADDUSER_USAGE_TEXT = "📝 Usage: /adduser @username"


def is_admin(context: ContextTypes.DEFAULT_TYPE, user_id: int) -> bool:
    """Check if user is an admin"""
    gate: AccessGate = context.bot_data["access_gate"]
    return gate.is_admin(user_id)


async def adminhelp_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Send a list of admin commands with descriptions."""
    if not is_admin(context, update.effective_user.id):
        await update.message.reply_text("This command is only available to admins.")
        return

    help_text = """
    🤖 Admin Commands:

    /adduser @username - Allow a Telegram user to open the calendar
    /adminhelp - Show this help message
    """
    await update.message.reply_text(help_text)


async def adduser_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Admin command to add a handle to the allow-list"""
    user_id = update.effective_user.id
    if not is_admin(context, user_id):
        logger.warning(f"Non-admin {user_id} tried /adduser")
        await update.message.reply_text(ADMIN_ONLY_TEXT)
        return

    if not context.args:
        await update.message.reply_text(ADDUSER_USAGE_TEXT)
        return

    username = normalize_handle(context.args[0])
    if not username:
        await update.message.reply_text("❌ Invalid username.")
        return

    gate: AccessGate = context.bot_data["access_gate"]
    if not gate.add_handle(username):
        await update.message.reply_text(f"⚠️ @{username} is already on the list.")
        return

    await update.message.reply_text(f"✅ User @{username} added.")
