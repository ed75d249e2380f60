import copy

import pytest

from ridepool.modules.rides.service import RideService


class InMemoryStore:
    """Dict-backed stand-in for ridepool.database with the same get/set interface."""

    def __init__(self, data=None):
        self.data = copy.deepcopy(data or {})
        self.saved_keys = []

    def get_item(self, key):
        return copy.deepcopy(self.data.get(key))

    def set_item(self, key, value):
        self.data[key] = copy.deepcopy(value)
        self.saved_keys.append(key)
        return True


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def service(store):
    return RideService(store=store, rides_key="transportRides", bookings_key="transportBooking",
                       time_buffer_minutes=60)


@pytest.fixture
def ride_form():
    """Provides a valid add-ride form."""
    return {
        "vehicleType": "Car",
        "vehicleNo": "KA-01 1234",
        "vacantSeats": 2,
        "time": "09:00",
        "pickupPoint": "Main Gate",
        "destination": "Tech Park",
    }
