"""
Write a sample booking document to ``DATA_PATH`` (default ``data/db.json``).

    python init_db.py
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from config import get_settings
from logging_config import setup_logging
from models import AppSettings, Resource
from repository import JsonFileDocumentStore, empty_document

logger = logging.getLogger(__name__)

DEFAULT_PATH = "data/db.json"


def sample_document(facility_tz: str, admin_email: str, now: datetime) -> dict:
    doc = empty_document()
    doc["meta"] = {"timezone": facility_tz, "created_at": now.isoformat().replace("+00:00", "Z")}
    doc["resources"] = [
        Resource("PISTA_01", "Pista Futbol Sala", "Pabellon principal", now).to_document(),
        Resource("PISTA_02", "Pista Padel 1", "Exterior", now).to_document(),
    ]
    doc["settings"] = AppSettings(admin_email=admin_email).to_document()
    return doc


def main() -> None:
    settings = get_settings()
    setup_logging(settings.log_level)
    path = settings.data_path or DEFAULT_PATH
    store = JsonFileDocumentStore(path)
    store.write(sample_document(settings.facility_tz, settings.admin_email, datetime.now(timezone.utc)))
    logger.info("Booking data initialised at %s", path)


if __name__ == "__main__":
    main()
