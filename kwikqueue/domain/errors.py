"""Domain error taxonomy"""

from typing import Any, Optional


class KwikQueueError(Exception):
    """Base class for every error raised by the queue engine"""

    message = "Queue operation failed"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class InvalidTransition(KwikQueueError):
    """A status change the guard rules do not allow; nothing was written"""

    def __init__(self, current: Any, target: Any, reason: Optional[str] = None):
        self.current = current
        self.target = target
        detail = f"Cannot move order from {_value(current)} to {_value(target)}"
        if reason:
            detail = f"{detail}: {reason}"
        super().__init__(detail)


class UnknownStatus(KwikQueueError):
    """A status string from outside the closed OrderStatus set"""

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"Unknown order status: {value!r}")


class InvalidCart(KwikQueueError):
    message = "Cart cannot be confirmed"


class RecordNotFound(KwikQueueError):
    def __init__(self, collection: str, record_id: Any):
        self.collection = collection
        self.record_id = record_id
        super().__init__(f"{collection} record {record_id} not found")


class StoreFailure(KwikQueueError):
    message = "Persistent store unavailable"


class StoreWriteFailure(StoreFailure):
    message = "Persistent store rejected the write"


class ConcurrentUpdate(StoreWriteFailure):
    """Conditional update lost against a newer version of the row"""

    def __init__(self, collection: str, record_id: Any, expected_version: int):
        self.collection = collection
        self.record_id = record_id
        self.expected_version = expected_version
        super().__init__(
            f"{collection} record {record_id} changed since version {expected_version}"
        )


class NotificationFailure(KwikQueueError):
    message = "Notification could not be delivered"


class GeolocationDenied(KwikQueueError):
    message = "Location permission denied. Allow location access to confirm you are at the store."


class GeolocationUnavailable(KwikQueueError):
    message = "Could not determine your location. Please try again."


class OutOfRange(KwikQueueError):
    def __init__(self, distance_meters: float, radius_meters: float):
        self.distance_meters = distance_meters
        self.radius_meters = radius_meters
        super().__init__(
            f"You are {round(distance_meters)}m away. Please move closer to the store "
            f"(max {round(radius_meters)}m)."
        )


class NoMatch(KwikQueueError):
    message = "The scanned code is not a valid store code."


class CompanyUnavailable(KwikQueueError):
    message = "This store is not accepting orders right now."


class DuplicateActiveOrder(KwikQueueError):
    """Customer already holds an active order for the company"""

    def __init__(self, existing: Any):
        self.existing = existing
        super().__init__("Customer already has an active order for this store")


class RealtimeTimeout(KwikQueueError):
    message = "Realtime subscription timed out"


def _value(status: Any) -> str:
    return getattr(status, "value", str(status))
