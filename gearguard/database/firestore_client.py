import logging
import threading

from firebase_admin import firestore

from ..core.config import Settings, settings as default_settings
from ..core.exceptions import StoreUnavailableError
from ..core.firebase_init import get_firebase_status, initialize_firebase

logger = logging.getLogger(__name__)


class FirestoreConnection:
    """
    Owns the Firestore client handle for one process.

    The app is initialized once (explicitly via initialize(), or on the first
    client() call) and the client is created on demand and then reused.
    """

    def __init__(self, settings: Settings = default_settings):
        self.settings = settings
        self._initialized = False
        self._client = None
        self._lock = threading.Lock()

    def initialize(self) -> bool:
        with self._lock:
            if not self._initialized:
                self._initialized = initialize_firebase(self.settings)
            return self._initialized

    def client(self):
        if self._client is not None:
            return self._client
        if not self.initialize():
            raise StoreUnavailableError(
                "Firestore is not available: Firebase initialization failed. "
                "Start the Firestore emulator or set FIREBASE_SERVICE_ACCOUNT_JSON / "
                "FIREBASE_SERVICE_ACCOUNT_PATH."
            )
        with self._lock:
            if self._client is None:
                self._client = firestore.client()
                logger.info("Firestore client created")
            return self._client

    def status(self) -> dict:
        status = get_firebase_status()
        status["client_ready"] = self._client is not None
        return status

    def close(self) -> None:
        with self._lock:
            if self._client is not None:
                self._client.close()
                self._client = None
