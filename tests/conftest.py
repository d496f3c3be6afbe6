import pytest

from helpers import ZONE, fixed_clock
from repository import BookingRepository, InMemoryDocumentStore
from serializer import WriteSerializer
from services import BookingService


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def service(store):
    repo = BookingRepository(store, default_zone=ZONE)
    return BookingService(repo, WriteSerializer(), facility_zone=ZONE, clock=fixed_clock)


@pytest.fixture
def resource(service):
    return service.create_resource("Pista Padel 1", "Exterior")
