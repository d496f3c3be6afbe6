from __future__ import annotations

import copy
import json
import os
import tempfile
from threading import Lock
from typing import Any, Callable, Dict, List, Optional, Tuple

from errors import StorageUnavailableError
from models import AppSettings, Reservation, Resource

Document = Dict[str, Any]


def empty_document() -> Document:
    return {"meta": {}, "resources": [], "reservations": [], "settings": {}}


# -----------------------------
# Document stores (whole-state read/write)
# -----------------------------
class InMemoryDocumentStore:
    def __init__(self, initial: Optional[Document] = None) -> None:
        self._doc: Document = copy.deepcopy(initial) if initial else empty_document()
        self._lock = Lock()

    def read(self) -> Document:
        with self._lock:
            return copy.deepcopy(self._doc)

    def write(self, doc: Document) -> None:
        with self._lock:
            self._doc = copy.deepcopy(doc)


class JsonFileDocumentStore:
    """Persists the whole document as one JSON file, replaced atomically on write."""

    def __init__(self, path: str) -> None:
        self.path = path

    def read(self) -> Document:
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                doc = json.load(fh)
        except FileNotFoundError:
            return empty_document()
        except (OSError, ValueError) as exc:
            raise StorageUnavailableError(f"Could not read booking data: {exc}") from exc
        if not isinstance(doc, dict):
            raise StorageUnavailableError("Booking data is not a JSON object.")
        return doc

    def write(self, doc: Document) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".db-", suffix=".json", dir=directory)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(doc, fh, indent=2, ensure_ascii=False)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as exc:
            raise StorageUnavailableError(f"Could not write booking data: {exc}") from exc


# -----------------------------
# Repository (typed access over a document store)
# -----------------------------
class BookingRepository:
    """
    Typed access to resources, reservations and settings.

    Every mutating method is a read-modify-write of the whole document and
    must run inside the service's write serializer.
    """

    def __init__(self, store, default_zone: str) -> None:
        self.store = store
        self.default_zone = default_zone

    def _resource(self, raw: Document) -> Resource:
        try:
            return Resource.from_document(raw)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise StorageUnavailableError(f"Malformed resource record: {exc!r}") from exc

    def _reservation(self, raw: Document) -> Reservation:
        try:
            return Reservation.from_document(raw, self.default_zone)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise StorageUnavailableError(f"Malformed reservation record: {exc!r}") from exc

    # resources
    def list_resources(self) -> List[Resource]:
        return [self._resource(d) for d in self.store.read().get("resources") or []]

    def get_resource(self, resource_id: str) -> Optional[Resource]:
        for d in self.store.read().get("resources") or []:
            if isinstance(d, dict) and d.get("id") == resource_id:
                return self._resource(d)
        return None

    def insert_resource(self, resource: Resource) -> None:
        doc = self.store.read()
        doc.setdefault("resources", []).append(resource.to_document())
        self.store.write(doc)

    def delete_resource(self, resource_id: str) -> Tuple[bool, int]:
        """Remove the resource and its reservations. Returns (found, reservations removed)."""
        doc = self.store.read()
        resources = doc.get("resources") or []
        kept = [d for d in resources if d.get("id") != resource_id]
        if len(kept) == len(resources):
            return False, 0
        reservations = doc.get("reservations") or []
        remaining = [d for d in reservations if d.get("resource_id") != resource_id]
        doc["resources"] = kept
        doc["reservations"] = remaining
        self.store.write(doc)
        return True, len(reservations) - len(remaining)

    # reservations
    def list_reservations(self, resource_id: Optional[str] = None) -> List[Reservation]:
        items = [self._reservation(d) for d in self.store.read().get("reservations") or []]
        if resource_id is not None:
            items = [r for r in items if r.resource_id == resource_id]
        return items

    def insert_reservation(self, reservation: Reservation) -> None:
        doc = self.store.read()
        doc.setdefault("reservations", []).append(reservation.to_document())
        self.store.write(doc)

    def delete_reservation(self, reservation_id: str) -> bool:
        return self.delete_reservations_where(lambda r: r.reservation_id == reservation_id) > 0

    def delete_reservations_where(self, predicate: Callable[[Reservation], bool]) -> int:
        doc = self.store.read()
        raw = doc.get("reservations") or []
        kept = [d for d in raw if not predicate(self._reservation(d))]
        removed = len(raw) - len(kept)
        if removed:
            doc["reservations"] = kept
            self.store.write(doc)
        return removed

    # settings
    def get_settings(self) -> AppSettings:
        return AppSettings.from_document(self.store.read().get("settings"))

    def save_settings(self, settings: AppSettings) -> None:
        doc = self.store.read()
        doc["settings"] = settings.to_document()
        self.store.write(doc)
