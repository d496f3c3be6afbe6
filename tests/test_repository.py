import json

import pytest

from errors import StorageUnavailableError
from helpers import ZONE, fixed_clock, reservation_payload
from models import Reservation
from repository import BookingRepository, InMemoryDocumentStore, JsonFileDocumentStore, empty_document
from serializer import WriteSerializer
from services import BookingService


def file_service(path) -> BookingService:
    repo = BookingRepository(JsonFileDocumentStore(str(path)), default_zone=ZONE)
    return BookingService(repo, WriteSerializer(), facility_zone=ZONE, clock=fixed_clock)


def test_missing_file_reads_as_empty_document(tmp_path):
    store = JsonFileDocumentStore(str(tmp_path / "db.json"))
    assert store.read() == empty_document()


def test_write_creates_directories_and_round_trips(tmp_path):
    path = tmp_path / "data" / "db.json"
    store = JsonFileDocumentStore(str(path))
    doc = empty_document()
    doc["meta"] = {"timezone": ZONE}
    store.write(doc)

    assert json.loads(path.read_text(encoding="utf-8")) == doc
    assert store.read() == doc
    # no temp files left behind
    assert [p.name for p in path.parent.iterdir()] == ["db.json"]


def test_corrupt_file_is_storage_unavailable(tmp_path):
    path = tmp_path / "db.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(StorageUnavailableError):
        JsonFileDocumentStore(str(path)).read()


def test_unwritable_location_is_storage_unavailable(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    store = JsonFileDocumentStore(str(blocker / "db.json"))
    with pytest.raises(StorageUnavailableError):
        store.write(empty_document())


def test_reservations_survive_a_restart(tmp_path):
    path = tmp_path / "db.json"
    first = file_service(path)
    resource = first.create_resource("Pista Futbol Sala")
    created = first.create_reservation(reservation_payload(resource.resource_id))

    second = file_service(path)
    assert second.list_reservations(resource.resource_id) == [created]
    assert [r.resource_id for r in second.list_resources()] == [resource.resource_id]


def test_in_memory_store_hands_out_copies():
    store = InMemoryDocumentStore()
    doc = store.read()
    doc["resources"].append({"id": "x"})
    assert store.read()["resources"] == []


def test_legacy_reservation_document_derives_local_fields():
    doc = {
        "id": "RES_old",
        "resource_id": "PISTA_01",
        "start": "2030-07-01T08:00:00.000Z",
        "end": "2030-07-01T09:30:00.000Z",
        "customer_name": "Old Booking",
    }
    r = Reservation.from_document(doc, ZONE)
    assert r.calendar_date == "2030-07-01"
    assert r.local_start_time == "10:00"
    assert r.duration_minutes == 90
    assert r.time_zone == ZONE


@pytest.mark.parametrize(
    "doc",
    [
        {"resources": [], "reservations": [{"id": "RES_1", "resource_id": "PISTA_01"}]},
        {"resources": [], "reservations": [{"resource_id": "PISTA_01", "start": "2030-07-01T08:00:00Z"}]},
        {"resources": [], "reservations": [{"id": "RES_1", "start": "x", "end": "y", "resource_id": "P"}]},
    ],
)
def test_malformed_reservation_record_is_storage_unavailable(doc):
    repo = BookingRepository(InMemoryDocumentStore(doc), default_zone=ZONE)
    with pytest.raises(StorageUnavailableError) as exc_info:
        repo.list_reservations()
    assert exc_info.value.__cause__ is not None


def test_malformed_resource_record_is_storage_unavailable():
    repo = BookingRepository(InMemoryDocumentStore({"resources": [{"name": "no id"}]}), default_zone=ZONE)
    with pytest.raises(StorageUnavailableError):
        repo.list_resources()
