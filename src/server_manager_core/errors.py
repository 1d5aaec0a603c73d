class ManagerError(Exception):
    """Base exception for server_manager_core."""


class ValidationError(ManagerError):
    """State/config is invalid for the requested operation."""


class UserInputError(ValidationError):
    """Operator typed something unusable (bad menu choice, empty field)."""


class AlreadyExistsError(UserInputError):
    """A world with this name already has save files."""


class PortInUseError(UserInputError):
    """Another service binding already listens on the requested port."""


class JobExistsError(UserInputError):
    """An auto-backup job is already installed; caller must edit or cancel."""


class NotFoundError(ManagerError):
    """Binding, backup, job or world does not exist."""


class ExternalToolFailure(ManagerError):
    """systemctl, tar or steamcmd failed. `diagnostic` holds the tool's own output."""

    def __init__(self, message: str, diagnostic: str = ""):
        super().__init__(message)
        self.diagnostic = diagnostic

    def __str__(self) -> str:
        base = super().__str__()
        if self.diagnostic:
            return f"{base}: {self.diagnostic.strip()}"
        return base
