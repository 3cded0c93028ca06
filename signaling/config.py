import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

APP_NAME = "WebRTC Signaling Relay"
VERSION = "1.0.0"

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 8080))
RELOAD = os.getenv("RELOAD", "false").lower() in ("1", "true", "yes")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

CORS_ALLOW_ORIGINS = [o.strip() for o in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",") if o.strip()]

WS_PATH = os.getenv("WS_PATH", "/ws")
CLIENT_ID_PARAM = "clientId"

# "from" value of messages the relay itself originates
SERVER_SENDER_ID = "server"
