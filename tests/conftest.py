import pytest

from fakes import CHECK_IN_AT, InMemoryStore, ManualClock
from frontdesk.services.lifecycle import LifecycleController


GUEST = {
    "guest_name": "ravi kumar",
    "phone_number": "9876543210",
    "id_number": "abcd1234",
    "number_of_guests": 2,
    "ac_type": "AC",
}


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def clock():
    return ManualClock(CHECK_IN_AT)


@pytest.fixture
def controller(store, clock):
    return LifecycleController(store, clock)


@pytest.fixture
def room(store):
    return store.seed_room(101, floor=1, type="ac")


@pytest.fixture
def guest():
    return dict(GUEST)
