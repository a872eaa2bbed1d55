import firebase_admin
from firebase_admin import credentials
import json
import logging
import os
from typing import Any, Dict, Optional

from google.auth.credentials import AnonymousCredentials

from .config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class EmulatorCredential(credentials.Base):
    """Anonymous credential for talking to the local Firestore emulator."""

    def get_credential(self):
        return AnonymousCredentials()


def parse_service_account_json(raw: str) -> Dict[str, Any]:
    """
    Parse a service account document.

    Environment variables often carry the private key with literal "\\n"
    sequences, so a second attempt is made with those normalized.
    """
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return json.loads(raw.replace("\\n", "\n"))


def load_service_account(settings: Settings) -> Optional[Dict[str, Any]]:
    """Return the configured service account, or None when no credentials are set."""
    raw_json = (settings.FIREBASE_SERVICE_ACCOUNT_JSON or "").strip()
    if raw_json:
        return parse_service_account_json(raw_json)

    path = (settings.FIREBASE_SERVICE_ACCOUNT_PATH or "").strip()
    if path:
        if not os.path.exists(path):
            logger.warning(f"Firebase service account file not found at {path}")
            return None
        with open(path, encoding="utf-8") as fh:
            return parse_service_account_json(fh.read())

    return None


def is_emulator_mode(settings: Settings) -> bool:
    return (
        settings.FIREBASE_USE_EMULATORS
        or bool((settings.FIRESTORE_EMULATOR_HOST or "").strip())
        or bool(os.getenv("FIRESTORE_EMULATOR_HOST", "").strip())
    )


def ensure_emulator_defaults(settings: Settings) -> str:
    """Point the Firestore client at the local emulator; returns the host in use."""
    host = (
        (settings.FIRESTORE_EMULATOR_HOST or "").strip()
        or os.getenv("FIRESTORE_EMULATOR_HOST", "").strip()
        or settings.DEFAULT_EMULATOR_HOST
    )
    # google-cloud-firestore reads the emulator address from the environment
    os.environ["FIRESTORE_EMULATOR_HOST"] = host
    return host


def resolve_project_id(settings: Settings, service_account: Optional[Dict[str, Any]] = None) -> Optional[str]:
    if settings.FIREBASE_PROJECT_ID and settings.FIREBASE_PROJECT_ID.strip():
        return settings.FIREBASE_PROJECT_ID.strip()
    if service_account and service_account.get("project_id"):
        return service_account["project_id"]
    return os.getenv("GCLOUD_PROJECT") or None


def initialize_firebase(settings: Settings = default_settings) -> bool:
    """
    Initialize the Firebase Admin SDK if not already initialized.

    Without credentials (or with emulators requested) the app is created
    against the local Firestore emulator so local runs work on a fresh
    machine. Returns True if successful, False otherwise.
    """
    if firebase_admin._apps:
        return True

    try:
        service_account = load_service_account(settings)

        if is_emulator_mode(settings) or service_account is None:
            host = ensure_emulator_defaults(settings)
            project_id = resolve_project_id(settings)
            firebase_admin.initialize_app(EmulatorCredential(), {"projectId": project_id})
            logger.info(f"Firebase initialized against emulator at {host} (project {project_id})")
            return True

        project_id = resolve_project_id(settings, service_account)
        cred = credentials.Certificate(service_account)
        firebase_admin.initialize_app(cred, {"projectId": project_id})
        logger.info(f"Firebase initialized for project {project_id}")
        return True

    except Exception as e:
        logger.error(f"Firebase initialization failed: {e}")
        return False


def is_firebase_available() -> bool:
    """Check if Firebase is available and initialized."""
    return bool(firebase_admin._apps)


def get_firebase_status() -> dict:
    """Get Firebase initialization status for debugging."""
    return {
        "apps_count": len(firebase_admin._apps) if firebase_admin._apps else 0,
        "available": is_firebase_available(),
        "emulator_host": os.getenv("FIRESTORE_EMULATOR_HOST"),
    }
