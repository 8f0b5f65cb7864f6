import os
from datetime import timedelta
from dotenv import load_dotenv

load_dotenv()

bot_token = os.getenv("TELEGRAM_BOT_TOKEN") or os.getenv("TELEGRAM_TOKEN")
fallback_chat_id = os.getenv("TELEGRAM_CHAT_ID")
allow_fallback_chat_id = os.getenv("ALLOW_FALLBACK_CHAT_ID") == "true"
app_env = os.getenv("APP_ENV", "development")
port = int(os.getenv("PORT", "3000"))
log_level = os.getenv("LOG_LEVEL", "INFO").upper()

PROMO_TTL = timedelta(days=7)
SESSION_COOLDOWN = timedelta(hours=24)
EVENT_TTL = timedelta(hours=24)
INIT_DATA_MAX_AGE = timedelta(hours=1)
TELEGRAM_TIMEOUT_SECONDS = 4.5
MAX_BODY_BYTES = 20 * 1024

if __name__ == "__main__":
    print(bool(bot_token), fallback_chat_id, allow_fallback_chat_id, app_env, port)
