import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv
from pymongo import AsyncMongoClient

from board_service.actions.memory import MemoryStorage
from board_service.actions.storage import DEFAULT_TIMEOUT, MongoStorage, Storage
from board_service.actions.validation import RequestValidator, ValidationRules

load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


@dataclass
class Settings:
    """Service settings read from the environment (and a .env file)."""

    mongo_uri: str = field(default_factory=lambda: os.getenv("MONGO_DB", "mongodb://localhost:27017"))
    mongo_db_name: str = field(default_factory=lambda: os.getenv("MONGO_DB_NAME", "funcards"))
    collection: str = field(default_factory=lambda: os.getenv("BOARDS_COLLECTION", "boards"))
    store_timeout: float = field(default_factory=lambda: float(os.getenv("STORE_TIMEOUT", str(DEFAULT_TIMEOUT))))
    storage_backend: str = field(default_factory=lambda: os.getenv("STORAGE_BACKEND", "mongo"))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    debug: bool = field(default_factory=lambda: _env_bool("DEBUG"))
    host: str = field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    validation_rules_file: Optional[str] = field(default_factory=lambda: os.getenv("VALIDATION_RULES_FILE") or None)


def build_validator(settings: Settings) -> RequestValidator:
    if settings.validation_rules_file:
        return RequestValidator(ValidationRules.from_file(settings.validation_rules_file))
    return RequestValidator(ValidationRules())


def build_storage(settings: Settings) -> Storage:
    if settings.storage_backend == "memory":
        return MemoryStorage()
    if settings.storage_backend != "mongo":
        raise ValueError(f"unknown storage backend: {settings.storage_backend}")

    # tz_aware keeps created_at in UTC on the way back out
    client = AsyncMongoClient(settings.mongo_uri, tz_aware=True)
    collection = client[settings.mongo_db_name][settings.collection]
    return MongoStorage(collection, timeout=settings.store_timeout)
