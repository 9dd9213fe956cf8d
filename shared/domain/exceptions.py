"""
Engine Error Taxonomy

Every failure the engine reports is a subclass of BookingEngineError and
carries a stable `code`, so callers branch on the type (or the code) and
never on message text.
"""

from __future__ import annotations


class BookingEngineError(Exception):
    """Base class for all engine errors"""

    code = 'engine_error'

    def __init__(self, message: str = '', **details):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__
        self.details = details

    def to_dict(self) -> dict:
        return {'code': self.code, 'detail': self.message, **self.details}


class ValidationError(BookingEngineError):
    """Malformed input rejected before any read"""

    code = 'validation_error'

    def __init__(self, message: str, field: str | None = None, **details):
        if field is not None:
            details['field'] = field
        super().__init__(message, **details)
        self.field = field


class NotFound(BookingEngineError):
    """A referenced unit, rule or reservation does not exist"""

    code = 'not_found'


class LockTimeout(BookingEngineError):
    """A critical section could not be entered in time; safe to retry"""

    code = 'lock_timeout'
