from src.server_manager_core.errors import (
    ManagerError as OrchestrationError,
    ValidationError,
    UserInputError,
    AlreadyExistsError,
    PortInUseError,
    JobExistsError,
    NotFoundError,
    ExternalToolFailure,
)


class NoWorldSelectedError(ValidationError):
    """Requested operation needs a selected world, but none is selected."""


__all__ = [
    "OrchestrationError",
    "ValidationError",
    "UserInputError",
    "AlreadyExistsError",
    "PortInUseError",
    "JobExistsError",
    "NotFoundError",
    "ExternalToolFailure",
    "NoWorldSelectedError",
]
