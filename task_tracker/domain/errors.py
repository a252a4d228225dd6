class TaskTrackerError(Exception):
    """Базовая ошибка сервиса. status_code используется HTTP-слоем."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(TaskTrackerError):
    """Ошибка входных данных; field указывает на поле, если оно известно."""

    status_code = 400
    default_message = "Validation failed"

    def __init__(self, message: str | None = None, field: str = ""):
        super().__init__(message)
        self.field = field


class InvalidInput(ValidationError):
    pass


class Unauthenticated(TaskTrackerError):
    status_code = 401
    default_message = "Not authenticated"


class InvalidCredentials(TaskTrackerError):
    status_code = 401
    default_message = "Invalid credentials"


class Forbidden(TaskTrackerError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(TaskTrackerError):
    status_code = 404
    default_message = "Not found"


class DuplicateEmail(TaskTrackerError):
    status_code = 409
    default_message = "Email already registered"


class InternalError(TaskTrackerError):
    status_code = 500
