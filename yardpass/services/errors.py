"""
Ошибки уровня вызывающего (4xx). У каждой есть стабильный код причины,
по которому фронтенд и бот подбирают локализованное сообщение.
"""

APARTMENT_NOT_FOUND = "APARTMENT_NOT_FOUND"
BUILDING_NOT_FOUND = "BUILDING_NOT_FOUND"
RESIDENT_NOT_FOUND = "RESIDENT_NOT_FOUND"
RESIDENT_ID_REQUIRED = "RESIDENT_ID_REQUIRED"
RESIDENT_APARTMENT_MISMATCH = "RESIDENT_APARTMENT_MISMATCH"
RESIDENT_INACTIVE = "RESIDENT_INACTIVE"
INVALID_CAR_PLATE = "INVALID_CAR_PLATE"
INVALID_TIME_RANGE = "INVALID_TIME_RANGE"
DURATION_EXCEEDED = "DURATION_EXCEEDED"
DAILY_LIMIT_EXCEEDED = "DAILY_LIMIT_EXCEEDED"
QUIET_HOURS_VIOLATION = "QUIET_HOURS_VIOLATION"
PASS_NOT_FOUND = "PASS_NOT_FOUND"
ALREADY_REVOKED = "ALREADY_REVOKED"
PASS_ACCESS_DENIED = "PASS_ACCESS_DENIED"
INVALID_QUIET_HOURS = "INVALID_QUIET_HOURS"
INVALID_RULE = "INVALID_RULE"
INVALID_QR_FORMAT = "INVALID_QR_FORMAT"
RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"


class PassError(Exception):
    """Базовая ошибка предметной области"""

    status_code = 400

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    def __repr__(self):
        return f"<{self.__class__.__name__}(code={self.code})>"


class InvalidRequestError(PassError):
    status_code = 400


class NotFoundError(PassError):
    status_code = 404


class PolicyError(PassError):
    """Нарушение правил здания: длительность, лимит, тихие часы"""

    status_code = 422


class AlreadyRevokedError(PassError):
    status_code = 409


class AccessDeniedError(PassError):
    status_code = 403


class QRFormatError(PassError):
    status_code = 400

    def __init__(self, message: str = "Неверный формат QR-кода"):
        super().__init__(INVALID_QR_FORMAT, message)
