class AppError(Exception):
    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def type_name(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict:
        return {"error": self.message, "type": self.type_name}


class ValidationError(AppError):
    status_code = 400
    default_message = "Validation failed"


class Unauthorized(AppError):
    status_code = 401
    default_message = "Unauthorized"


class Forbidden(AppError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(AppError):
    status_code = 404
    default_message = "Not Found"


class InvalidTransition(AppError):
    status_code = 400
    default_message = "Status change not allowed"

    def __init__(self, current, target):
        self.current = current
        self.target = target
        super().__init__(f"Cannot change booking status from {current} to {target}")


class Conflict(AppError):
    status_code = 409
    default_message = "Conflict"


class InternalError(AppError):
    status_code = 500
