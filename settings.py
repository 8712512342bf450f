import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()


def _int_env(name, default):
    """Read an integer environment variable, failing loudly on garbage"""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


# ============ Bot ============

TOKEN = os.getenv("DISCORD_TOKEN")

# Commands are synced to this guild only when set (instant availability)
GUILD_ID = _int_env("GUILD_ID", None)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


# ============ Game ============

BASE_DIR = Path(__file__).parent
DICTIONARY_PATH = Path(os.getenv("DICTIONARY_PATH", BASE_DIR / "content" / "dictionary.jsonl"))

# Seconds a round waits for a click before the session is dropped
ROUND_TIMEOUT = _int_env("ROUND_TIMEOUT", 120)

# Health API port, 0 turns the side server off
HEALTH_API_PORT = _int_env("HEALTH_API_PORT", 8765)


# ============ Emotes ============

EMOTE_WOW = os.getenv("EMOTE_WOW", "😮")
EMOTE_FUBU_LAUGH = os.getenv("EMOTE_FUBU_LAUGH", "🤣")
EMOTE_SCRAJJ = os.getenv("EMOTE_SCRAJJ", "🫠")
EMOTE_ANW = os.getenv("EMOTE_ANW", "😵")
EMOTE_WAT = os.getenv("EMOTE_WAT", "🤨")

ANSWER_THUMBNAIL_URL = os.getenv("ANSWER_THUMBNAIL_URL")
