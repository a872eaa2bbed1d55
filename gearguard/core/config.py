# gearguard/core/config.py
import os
from dotenv import load_dotenv

load_dotenv()


def _env_flag(key: str, default: str = "false") -> bool:
    return os.getenv(key, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    FIREBASE_PROJECT_ID: str = os.getenv("FIREBASE_PROJECT_ID", "gear-guard-demo")
    # Either an inline JSON document or a path to a service account file
    FIREBASE_SERVICE_ACCOUNT_JSON: str | None = os.getenv("FIREBASE_SERVICE_ACCOUNT_JSON")
    FIREBASE_SERVICE_ACCOUNT_PATH: str | None = os.getenv("FIREBASE_SERVICE_ACCOUNT_PATH")

    # Emulator mode is also implied when no credentials are configured
    FIREBASE_USE_EMULATORS: bool = _env_flag("FIREBASE_USE_EMULATORS")
    FIRESTORE_EMULATOR_HOST: str | None = os.getenv("FIRESTORE_EMULATOR_HOST")
    DEFAULT_EMULATOR_HOST: str = "127.0.0.1:8080"

    # Upper bound for a single store operation; a timeout is a connectivity failure
    STORE_TIMEOUT_SECONDS: float = float(os.getenv("STORE_TIMEOUT_SECONDS", "4.5"))
    STORE_LOOKUP_TIMEOUT_SECONDS: float = float(os.getenv("STORE_LOOKUP_TIMEOUT_SECONDS", "3.5"))

    CORS_ORIGINS: list = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "*").split(",")
        if origin.strip()
    ]


settings = Settings()
