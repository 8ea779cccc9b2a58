from quart import Quart, request, jsonify, ResponseReturnValue
from services.database import get_db
from datetime import datetime, timezone
import json
import logging
from telegram import Update
from telegram.ext import Application


logger = logging.getLogger(__name__)


def setup_routes(app: Quart, application: Application) -> None:
    """Set up the webhook and health routes"""

    @app.route('/webhook', methods=['POST'])
    async def webhook() -> ResponseReturnValue:
        """Handle incoming webhook updates"""
        try:
            if not application or not application.bot:
                logger.error("Application not initialized")
                return jsonify({"status": "error", "message": "Application not initialized"}), 500

            # Check content type
            if request.headers.get('content-type') != 'application/json':
                logger.error(f"Invalid content type: {request.headers.get('content-type')}")
                return jsonify({"status": "error", "message": "Invalid content type"}), 400

            raw_data = await request.get_data()
            if not raw_data:
                logger.error("Empty request body")
                return jsonify({"status": "error", "message": "Empty request body"}), 400

            try:
                json_data = json.loads(raw_data)
            except json.JSONDecodeError as e:
                logger.error(f"JSON decode error: {e}")
                return jsonify({"status": "error", "message": "Invalid JSON format"}), 400

            if not json_data:
                logger.error("Empty JSON data")
                return jsonify({"status": "error", "message": "Empty JSON data"}), 400

            update = Update.de_json(json_data, application.bot)
            await application.process_update(update)
            return jsonify({"status": "ok"})

        except Exception as e:
            logger.error(f"Error processing update: {e}", exc_info=True)
            return jsonify({"status": "error", "message": "Internal error"}), 500

    @app.route('/status')
    async def bot_status():
        """Check if the bot is running."""
        return "Bot is running!"

    @app.route('/health')
    async def health_check():
        """Health check endpoint"""
        try:
            db = await get_db()
            await db.command('ping')
            return {
                "status": "healthy",
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "db": "connected"
            }, 200
        except Exception as e:
            logger.error(f"Health check failed: {e}")
            return {
                "status": "unhealthy",
                "error": str(e)
            }, 500
