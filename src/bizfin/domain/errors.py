class AppError(Exception):
    """Base app error."""


class ValidationError(AppError):
    pass


class NotFoundError(AppError):
    pass


class DataAccessError(AppError):
    """Store or transport failure. Fatal to the current call, never retried here."""


class ConstraintViolationError(AppError):
    pass


class RolloverPreconditionError(AppError):
    """Expected, user-correctable rollover refusal."""


class AlreadyRolledOverError(RolloverPreconditionError):
    pass


class NoSourceExpensesError(RolloverPreconditionError):
    pass


class PartialRolloverError(AppError):
    def __init__(self, message: str, inserted: int):
        super().__init__(message)
        self.inserted = inserted


class ConfigurationError(AppError):
    """Missing or malformed environment settings."""
