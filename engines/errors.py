"""
ServiceDesk Pricing - Engine Errors
Structural input problems are system errors; margin policy problems are
validation errors. Numeric edge cases never raise, they degrade to zero.
"""


class EngineError(Exception):
    error_type = 'calculation_error'
    category = 'system'

    def __init__(self, message, details=None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self):
        return {'errorType': self.error_type, 'category': self.category,
                'message': self.message, 'details': self.details}


class InvalidInputError(EngineError):
    error_type = 'invalid_calculation_input'
    category = 'system'


class MarginConfigError(EngineError):
    error_type = 'validation_error'
    category = 'validation'


def require_list(value, field):
    if not isinstance(value, (list, tuple)):
        raise InvalidInputError(f"'{field}' must be a list, got {type(value).__name__}",
                                {'field': field})
    return value


def require_mapping(value, field):
    if not isinstance(value, dict):
        raise InvalidInputError(f"'{field}' must be an object, got {type(value).__name__}",
                                {'field': field})
    return value


def require_number(value, field):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInputError(f"'{field}' must be a number, got {type(value).__name__}",
                                {'field': field})
    return value
