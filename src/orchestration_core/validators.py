from src.server_manager_core.models import AppState, NewWorldRequest

from .errors import UserInputError, ValidationError

MIN_PASSWORD_LENGTH = 5


def validate_state_paths(state: AppState) -> None:
    for field_name in ("valheim_dir", "save_dir", "world_dir", "backup_dir", "log_dir", "scripts_dir", "units_dir"):
        if not str(getattr(state, field_name) or "").strip():
            raise ValidationError(f"{field_name} is empty.")


def validate_polling(state: AppState) -> None:
    if int(state.poll_attempts) < 1:
        raise ValidationError("poll_attempts must be >= 1.")
    if float(state.poll_delay_seconds) < 0:
        raise ValidationError("poll_delay_seconds must be >= 0.")
    if int(state.ready_timeout_seconds) <= 0:
        raise ValidationError("ready_timeout_seconds must be > 0.")


def validate_new_world_request(req: NewWorldRequest) -> None:
    """Field checks that need no filesystem access. Name/port uniqueness is the registry's job."""
    if not req.server_name.strip():
        raise UserInputError("Server name cannot be empty.")
    if not req.world_name.strip():
        raise UserInputError("World name cannot be empty.")
    if len(req.password) < MIN_PASSWORD_LENGTH:
        raise UserInputError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
    # Valheim refuses to start when the password appears in the server name.
    if req.password.lower() in req.server_name.lower():
        raise UserInputError("Password must not be part of the server name.")
    if '"' in req.server_name or '"' in req.password:
        raise UserInputError("Server name and password cannot contain double quotes.")
