import firebase_admin
from firebase_admin import credentials, storage
import json
from loguru import logger

from core.config import settings

def initialize_firebase():
    """Initializes the Firebase Admin SDK (Realtime Database + Cloud Storage)."""
    if firebase_admin._apps:
        return
    try:
        # The service account key is expected to be a JSON string in the environment variable.
        service_account_info = json.loads(settings.FIREBASE_SERVICE_ACCOUNT_KEY_JSON)

        cred = credentials.Certificate(service_account_info)

        firebase_admin.initialize_app(cred, {
            'databaseURL': settings.FIREBASE_DATABASE_URL,
            'storageBucket': settings.FIREBASE_STORAGE_BUCKET,
        })
        logger.info("Firebase initialized successfully.")
    except Exception as e:
        # The API still starts; every read and write will fail until credentials are fixed.
        logger.error(f"Error initializing Firebase: {type(e).__name__} - {e}")

def get_bucket():
    """The storage bucket holding uploaded photo binaries."""
    return storage.bucket()

def public_url_for(storage_path: str, blob=None) -> str:
    """Public URL for a stored photo, preferring the configured CDN/base URL."""
    if settings.STORAGE_PUBLIC_BASE_URL:
        return f"{settings.STORAGE_PUBLIC_BASE_URL.rstrip('/')}/{storage_path}"
    if blob is None:
        blob = get_bucket().blob(storage_path)
    return blob.public_url
