import logging
import asyncio
import sys
from config.settings import Config
from services.application import create_app, initialize_application
from services.content_loader import content_loader
from services.database import init_mongodb
from hypercorn.config import Config as HypercornConfig
from hypercorn.asyncio import serve

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


async def async_main():
    try:
        # Content is read-only for the life of the process; a broken file is fatal
        logger.info("Loading content catalog...")
        content_loader.validate_content_structure()

        logger.info("Initializing database connection...")
        db = await init_mongodb()

        logger.info("Initializing Telegram bot...")
        application = await initialize_application(db)
        app = create_app(application)

        # Configure Hypercorn
        hypercorn_config = HypercornConfig()
        hypercorn_config.bind = [f"0.0.0.0:{int(Config.PORT)}"]
        hypercorn_config.worker_class = "asyncio"

    except Exception as e:
        logger.error(f"Startup failed: {e}", exc_info=True)
        return 1

    await application.start()
    if not Config.WEBHOOK_URL:
        await application.updater.start_polling()
        logger.info("Polling for updates")

    try:
        logger.info(f"Web server starting on port {Config.PORT}")
        await serve(app, hypercorn_config)
    finally:
        if application.updater and application.updater.running:
            await application.updater.stop()
        await application.stop()
        await application.shutdown()

    return 0


def main():
    return asyncio.run(async_main())


if __name__ == "__main__":
    sys.exit(main())
