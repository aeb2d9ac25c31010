"""Typed exceptions for billing failures."""


class BillingError(Exception):
    """Base class for billing engine errors."""


class PeriodLockedError(BillingError):
    """
    The period has not started yet, so its invoice is read-only.

    Raised by both the draft editor and the store on save.
    """

    def __init__(self, period_id: str):
        self.period_id = period_id
        super().__init__(f"Period {period_id} is locked until it starts")


class InvalidPeriodError(BillingError, ValueError):
    """Period id does not name a bi-monthly period."""


class ConfigurationError(BillingError):
    """A rate configuration is unusable."""


class ZeroMeetingUnitError(ConfigurationError, ZeroDivisionError):
    """meeting_rate_unit is zero. Settings validation normally rejects this."""

    def __init__(self):
        super().__init__("meeting_rate_unit must be a positive integer")
