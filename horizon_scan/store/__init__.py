"""Persistent store: ORM models, engine/session handling and seeding."""

from .db import Store
from .models import (
    DIGEST_FAILED,
    DIGEST_SUCCESS,
    EPOCH,
    Article,
    Assessment,
    Base,
    DigestRecord,
    Feed,
    Topic,
    utc_now,
)
from .seed import seed_database

__all__ = [
    "Store",
    "Base",
    "Feed",
    "Article",
    "Topic",
    "Assessment",
    "DigestRecord",
    "DIGEST_SUCCESS",
    "DIGEST_FAILED",
    "EPOCH",
    "utc_now",
    "seed_database",
]
