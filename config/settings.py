import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent


def _parse_admin_ids(raw: str) -> frozenset:
    """Parse a comma separated list of numeric Telegram ids, skipping blanks and junk."""
    ids = set()
    for part in raw.split(','):
        part = part.strip()
        if part.lstrip('-').isdigit():
            ids.add(int(part))
    return frozenset(ids)


class Config:
    BOT_TOKEN = os.getenv('TELEGRAM_BOT_TOKEN') or os.getenv('BOT_TOKEN')
    MONGODB_URI = os.getenv('MONGODB_URI') or os.getenv('DATABASE_URL') or os.getenv('MONGO_URI')
    DB_NAME = os.getenv('MONGODB_DB_NAME', 'adventbot')
    WEBHOOK_URL = os.getenv('WEBHOOK_URL')
    ADMIN_IDS = _parse_admin_ids(os.getenv('ADMIN_IDS', ''))
    PORT = int(os.getenv('PORT', '8080'))
    ALLOWED_FILE = Path(os.getenv('ALLOWED_FILE', BASE_DIR / 'data' / 'allowed.json'))
    CONTENT_FILE = Path(os.getenv('CONTENT_FILE', BASE_DIR / 'data' / 'days.json'))
    MEDIA_DIR = Path(os.getenv('MEDIA_DIR', BASE_DIR / 'data'))
    SUPPORT_CONTACT = os.getenv('SUPPORT_CONTACT', '@your_support_username')
    TOTAL_DAYS = 24
