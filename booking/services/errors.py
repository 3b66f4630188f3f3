"""
errors.py
---------
Exceptions raised by the scheduling core.

Input errors also subclass ValueError so callers that already catch ValueError
keep working.
"""


class SchedulingError(Exception):
    """Base class for every scheduling failure."""


class InvalidTimeFormat(SchedulingError, ValueError):
    """A clock time matched neither 'HH:MM' nor 'h:mm AM/PM'."""


class OutOfRange(SchedulingError, ValueError):
    """A minute offset or interval fell outside its allowed range."""


class InvalidBookingRequest(SchedulingError, ValueError):
    """The booking request references unusable data (past time, closed location...)."""


class InvalidStatusTransition(SchedulingError, ValueError):
    def __init__(self, current, requested):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move booking from '{current}' to '{requested}'.")


class NoQualifiedStaff(SchedulingError):
    """No active staff member can take the request."""


class SlotNoLongerAvailable(SchedulingError):
    """The authoritative write-time check found an overlapping booking."""


class TimezoneResolutionFailure(SchedulingError):
    """The IANA zone could not be resolved from the tz database."""

    def __init__(self, tz_name, reason=""):
        self.tz_name = tz_name
        msg = f"Could not resolve timezone '{tz_name}'"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)
