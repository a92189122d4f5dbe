import os
from dotenv import load_dotenv

load_dotenv()


def _split_list(value: str) -> list:
    return [item.strip() for item in value.split(",") if item.strip()]


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", os.urandom(24))
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///pixeloria_chat.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

    # Secret the credential vault derives its AES key from
    AI_ENCRYPTION_SECRET = os.getenv("AI_ENCRYPTION_SECRET", "pixeloria-ai-key-32-chars-long!!")

    # Provider defaults
    OPENAI_API_BASE = os.getenv("OPENAI_API_BASE", "https://api.openai.com/v1")
    GROQ_API_BASE = os.getenv("GROQ_API_BASE", "https://api.groq.com/openai/v1")
    DEEPSEEK_API_BASE = os.getenv("DEEPSEEK_API_BASE", "https://api.deepseek.com/v1")
    GEMINI_API_BASE = os.getenv("GEMINI_API_BASE", "https://generativelanguage.googleapis.com")

    AI_TEST_TIMEOUT = float(os.getenv("AI_TEST_TIMEOUT", "10"))
    AI_CHAT_TIMEOUT = float(os.getenv("AI_CHAT_TIMEOUT", "30"))
    AI_SYSTEM_PROMPT = os.getenv(
        "AI_SYSTEM_PROMPT",
        "You are a helpful assistant for Pixeloria, a web development agency. "
        "Keep answers concise and format them in Markdown. Guide users toward "
        "our services when appropriate.",
    )
    # httpx transport override; tests put an httpx.MockTransport here
    HTTPX_TRANSPORT = None

    ADMIN_FRESHNESS_SECONDS = int(os.getenv("ADMIN_FRESHNESS_SECONDS", "300"))
    ADMIN_API_TOKEN = os.getenv("ADMIN_API_TOKEN", "")

    # Redis pub/sub for live chat events; empty keeps them in this process only
    REDIS_URL = os.getenv("REDIS_URL", "")

    # Outbound email
    SMTP_SERVER = os.getenv("SMTP_SERVER", "")
    SMTP_PORT = os.getenv("SMTP_PORT", "587")
    SMTP_USERNAME = os.getenv("SMTP_USERNAME", "")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "")
    SMTP_USE_TLS = os.getenv("SMTP_USE_TLS", "true")
    FROM_EMAIL = os.getenv("FROM_EMAIL", "")
    CHAT_NOTIFY_EMAILS = _split_list(os.getenv("CHAT_NOTIFY_EMAILS", ""))
