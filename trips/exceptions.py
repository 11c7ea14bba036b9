class TripError(Exception):
    """Base class for trip workflow errors."""
    status_code = 400


class TripValidationError(TripError):
    """Submitted trip data failed form validation."""

    def __init__(self, errors, message="Please correct the highlighted fields."):
        super().__init__(message)
        self.errors = errors


class RoleNotPermitted(TripError):
    status_code = 403

    def __init__(self, action, role):
        super().__init__(f"Role {role} may not perform '{action}' on this trip.")
        self.action = action
        self.role = role


class InvalidTransition(TripError):
    status_code = 409

    def __init__(self, action, status):
        super().__init__(f"Cannot perform '{action}' while the trip is '{status}'.")
        self.action = action
        self.status = status


class TripNotFound(TripError):
    status_code = 404

    def __init__(self, trip_id):
        super().__init__(f"Trip {trip_id} not found.")
        self.trip_id = trip_id
