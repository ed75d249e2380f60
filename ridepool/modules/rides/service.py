"""
Ride matching and booking engine.

Holds today's rides and bookings in memory, enforces the booking rules and
writes both collections to the key-value store after every change.
"""

import logging
import threading
import time
import uuid
from dataclasses import replace
from typing import Callable, List, Optional

from ridepool import config
from ridepool import database as db
from ridepool.exceptions import BusinessRuleViolation, PersistenceError, ValidationError
from ridepool.modules.rides import time_utils
from ridepool.modules.rides.models import (
    ALREADY_BOOKED, DUPLICATE_RIDE, FULL, NOT_FOUND, OWN_RIDE, VALIDATION_FAILED,
    Ride, RideBooking, RideFilters, RideOutcome, VehicleType,
)
from ridepool.modules.rides.validation import validate_ride_data

logger = logging.getLogger(__name__)

Subscriber = Callable[[List[Ride], List[RideBooking]], None]


def generate_ride_id() -> str:
    return f"ride_{int(time.time() * 1000)}_{uuid.uuid4().hex[:7]}"


def normalize_employee_id(employee_id: Optional[str]) -> str:
    return (employee_id or "").strip()


class RideService:
    """
    One instance per running application. Pass it to whatever renders rides.

    ``store`` is anything with ``get_item(key)`` and ``set_item(key, value)``;
    by default the SQLAlchemy backed ``ridepool.database`` module.
    """

    def __init__(self, store=None, rides_key: str = None, bookings_key: str = None,
                 time_buffer_minutes: int = None):
        self.store = store if store is not None else db
        self.rides_key = rides_key or config.RIDES_KEY
        self.bookings_key = bookings_key or config.BOOKINGS_KEY
        if time_buffer_minutes is None:
            time_buffer_minutes = config.TIME_BUFFER_MINUTES
        self.time_buffer_minutes = time_buffer_minutes

        self._lock = threading.RLock()
        self._subscribers: List[Subscriber] = []
        self._rides: List[Ride] = []
        self._bookings: List[RideBooking] = []
        self.loaded_date: Optional[str] = None
        self.reload()

    # --- Loading -------------------------------------------------------------

    def reload(self) -> None:
        """Reads both collections from the store, keeping only today's rides."""
        with self._lock:
            raw_rides = self.store.get_item(self.rides_key) or []
            raw_bookings = self.store.get_item(self.bookings_key) or []
            today = time_utils.current_date()

            rides = []
            for item in raw_rides:
                try:
                    ride = Ride.from_dict(item)
                except (KeyError, TypeError, ValueError) as e:
                    logger.warning(f"Skipping malformed ride record {item!r}: {e}")
                    continue
                if ride.date == today:
                    rides.append(ride)

            ride_ids = {ride.id for ride in rides}
            bookings = []
            for item in raw_bookings:
                try:
                    booking = RideBooking.from_dict(item)
                except (KeyError, TypeError) as e:
                    logger.warning(f"Skipping malformed booking record {item!r}: {e}")
                    continue
                if booking.ride_id in ride_ids:
                    bookings.append(booking)

            self._rides, self._bookings = rides, bookings
            self.loaded_date = today
        logger.info(f"Loaded {len(rides)} ride(s) and {len(bookings)} booking(s) for {today}")

    def refresh_if_stale(self) -> bool:
        """Reloads when the calendar day changed since the last load. Returns True if it did."""
        with self._lock:
            if self.loaded_date == time_utils.current_date():
                return False
            logger.info(f"Day changed since {self.loaded_date}, reloading rides")
            self.reload()
            return True

    # --- Snapshots -----------------------------------------------------------

    @property
    def rides(self) -> List[Ride]:
        with self._lock:
            return list(self._rides)

    @property
    def bookings(self) -> List[RideBooking]:
        with self._lock:
            return list(self._bookings)

    def get_ride(self, ride_id: str) -> Optional[Ride]:
        with self._lock:
            return next((ride for ride in self._rides if ride.id == ride_id), None)

    # --- Subscribers ---------------------------------------------------------

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Registers ``callback(rides, bookings)``; returns a function that unregisters it."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self, rides: List[Ride], bookings: List[RideBooking]) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(list(rides), list(bookings))
            except Exception as e:
                logger.error(f"Ride subscriber {callback!r} failed: {e}", exc_info=True)

    # --- Persistence ---------------------------------------------------------

    def _save(self, key: str, records: list) -> bool:
        try:
            saved = self.store.set_item(key, [record.to_dict() for record in records])
        except PersistenceError as e:
            logger.error(f"Error while saving '{key}': {e}")
            return False
        if not saved:
            logger.error(f"Store refused to save '{key}'")
        return bool(saved)

    # --- Rules ---------------------------------------------------------------

    def _find_index(self, ride_id: str) -> int:
        for index, ride in enumerate(self._rides):
            if ride.id == ride_id:
                return index
        return -1

    def _check_booking(self, ride_id: str, employee_id: str) -> int:
        """Runs the booking rules in order; returns the ride's index or raises."""
        index = self._find_index(ride_id)
        if index == -1:
            raise BusinessRuleViolation(NOT_FOUND, f"Ride {ride_id} not found")
        ride = self._rides[index]
        if ride.employee_id == employee_id:
            raise BusinessRuleViolation(OWN_RIDE, "Employee cannot book their own ride")
        if ride.vacant_seats <= 0:
            raise BusinessRuleViolation(FULL, f"Ride {ride_id} has no vacant seats")
        if employee_id in ride.booked_employees:
            raise BusinessRuleViolation(ALREADY_BOOKED, f"{employee_id} already booked ride {ride_id}")
        return index

    def _check_no_ride_today(self, employee_id: str) -> None:
        today = time_utils.current_date()
        if any(ride.employee_id == employee_id and ride.date == today for ride in self._rides):
            raise BusinessRuleViolation(DUPLICATE_RIDE, f"{employee_id} already offered a ride today")

    # --- Operations ----------------------------------------------------------

    def create_ride(self, ride_data: dict, employee_id: str) -> RideOutcome:
        """Publishes a new ride for today. At most one ride per employee per day."""
        try:
            fields = validate_ride_data(ride_data, employee_id)
        except ValidationError as e:
            logger.info(f"Rejected ride from {employee_id!r}: {e}")
            return RideOutcome(ok=False, reason=VALIDATION_FAILED, errors=e.errors)

        with self._lock:
            try:
                self._check_no_ride_today(fields["employee_id"])
            except BusinessRuleViolation as e:
                logger.info(f"Rejected ride: {e}")
                return RideOutcome(ok=False, reason=e.reason)

            ride = Ride(
                id=generate_ride_id(),
                date=time_utils.current_date(),
                created_at=time_utils.current_timestamp(),
                original_seats=fields["vacant_seats"],
                booked_employees=(),
                **fields,
            )
            self._rides = self._rides + [ride]
            persisted = self._save(self.rides_key, self._rides)
            rides, bookings = list(self._rides), list(self._bookings)

        logger.info(f"Ride {ride.id} created by {ride.employee_id} ({ride.vacant_seats} seat(s) at {ride.time})")
        self._notify(rides, bookings)
        return RideOutcome(ok=True, ride=ride, persisted=persisted)

    def book_ride(self, ride_id: str, employee_id: str) -> RideOutcome:
        """Takes one seat on ``ride_id`` for ``employee_id``."""
        employee_id = normalize_employee_id(employee_id)
        if not employee_id:
            logger.info(f"Booking of ride {ride_id} rejected: no employee id")
            return RideOutcome(
                ok=False, reason=VALIDATION_FAILED,
                errors={"employeeId": "Employee ID is required."},
            )

        with self._lock:
            try:
                index = self._check_booking(ride_id, employee_id)
            except BusinessRuleViolation as e:
                logger.info(f"Booking rejected: {e}")
                return RideOutcome(ok=False, reason=e.reason, ride=self.get_ride(ride_id))

            ride = self._rides[index]
            updated = replace(
                ride,
                vacant_seats=ride.vacant_seats - 1,
                booked_employees=ride.booked_employees + (employee_id,),
            )
            booking = RideBooking(
                ride_id=ride_id,
                employee_id=employee_id,
                booking_time=time_utils.current_timestamp(),
            )
            rides = list(self._rides)
            rides[index] = updated
            self._rides, self._bookings = rides, self._bookings + [booking]

            persisted = self._save(self.rides_key, self._rides)
            persisted = self._save(self.bookings_key, self._bookings) and persisted
            rides, bookings = list(self._rides), list(self._bookings)

        logger.info(f"{employee_id} booked ride {ride_id}; {updated.vacant_seats} seat(s) left")
        self._notify(rides, bookings)
        return RideOutcome(ok=True, ride=updated, persisted=persisted)

    def can_book_ride(self, ride_id: str, employee_id: str) -> bool:
        employee_id = normalize_employee_id(employee_id)
        if not employee_id:
            return False
        with self._lock:
            try:
                self._check_booking(ride_id, employee_id)
            except BusinessRuleViolation:
                return False
            return True

    def available_rides(self, filters: Optional[RideFilters] = None) -> List[Ride]:
        """Rides with free seats, narrowed by every filter that is set."""
        filters = filters or RideFilters()

        vehicle_type = None
        if filters.vehicle_type:
            vehicle_type = VehicleType.parse(filters.vehicle_type)
            if vehicle_type is None:
                raise ValidationError({"vehicleType": f"Unknown vehicle type: {filters.vehicle_type}"})
        if filters.time and not time_utils.is_valid_time_format(filters.time):
            raise ValidationError({"time": "Search time must be in HH:MM format."})

        with self._lock:
            rides = [ride for ride in self._rides if ride.vacant_seats > 0]

        if vehicle_type:
            rides = [ride for ride in rides if ride.vehicle_type == vehicle_type]
        if filters.time:
            rides = [
                ride for ride in rides
                if time_utils.is_time_in_buffer(ride.time, filters.time, self.time_buffer_minutes)
            ]
        excluded = normalize_employee_id(filters.employee_id)
        if excluded:
            rides = [ride for ride in rides if ride.employee_id != excluded]
        return rides

    def rides_by_employee(self, employee_id: str) -> List[Ride]:
        employee_id = normalize_employee_id(employee_id)
        with self._lock:
            return [ride for ride in self._rides if ride.employee_id == employee_id]

    def bookings_by_employee(self, employee_id: str) -> List[RideBooking]:
        employee_id = normalize_employee_id(employee_id)
        with self._lock:
            return [booking for booking in self._bookings if booking.employee_id == employee_id]
