import os


def _flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default) not in ("0", "false", "False", "")


# Logging
LOG_LEVEL = os.getenv("GROWTH_LOG_LEVEL", "INFO").upper()

# CORS (comma separated)
CORS_ORIGINS = [
    o.strip()
    for o in os.getenv(
        "GROWTH_CORS_ORIGINS",
        "http://localhost:5000,http://127.0.0.1:5000,http://localhost:5173",
    ).split(",")
    if o.strip()
]

# Chat
CHAT_HISTORY_DEFAULT_LIMIT = int(os.getenv("CHAT_HISTORY_DEFAULT_LIMIT", "50"))
CHAT_HISTORY_MAX_LIMIT = int(os.getenv("CHAT_HISTORY_MAX_LIMIT", "200"))
CHAT_MAX_CONTENT_LENGTH = int(os.getenv("CHAT_MAX_CONTENT_LENGTH", "4000"))
# Off by default: the web client only sends {type, userId, username}.
CHAT_REQUIRE_TOKEN = _flag("CHAT_REQUIRE_TOKEN")
CHAT_ERROR_FRAMES = _flag("CHAT_ERROR_FRAMES")
# Seconds one recipient may take to accept a broadcast frame
CHAT_SEND_TIMEOUT = float(os.getenv("CHAT_SEND_TIMEOUT", "5"))

# OpenRouter (AI assessment)
OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY", "")
OPENROUTER_URL = os.getenv("OPENROUTER_URL", "https://openrouter.ai/api/v1/chat/completions")
OPENROUTER_MODEL = os.getenv("OPENROUTER_MODEL", "mistralai/mistral-7b-instruct:free")
OPENROUTER_REFERER = os.getenv("HTTP_REFERER", "http://localhost:5000")
OPENROUTER_TITLE = "GrowthTracker Personal Development App"
