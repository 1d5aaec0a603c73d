"""Tests for request and config validation."""
import pytest

from src.orchestration_core.errors import UserInputError, ValidationError
from src.orchestration_core.validators import (
    validate_new_world_request,
    validate_polling,
    validate_state_paths,
)
from src.server_manager_core.models import AppState, NewWorldRequest


def test_valid_request_passes():
    validate_new_world_request(NewWorldRequest(server_name="Viking Hall", world_name="Midgard", password="odin123"))


def test_password_inside_server_name_is_rejected():
    """The dedicated server refuses to start when the password is part of the name."""
    with pytest.raises(UserInputError):
        validate_new_world_request(NewWorldRequest(server_name="Odin123 Hall", world_name="M", password="odin123"))


def test_short_password_is_rejected():
    with pytest.raises(UserInputError):
        validate_new_world_request(NewWorldRequest(server_name="Hall", world_name="M", password="1234"))


def test_empty_paths_are_rejected():
    with pytest.raises(ValidationError):
        validate_state_paths(AppState(world_dir=" "))
    validate_state_paths(AppState())


def test_polling_bounds():
    validate_polling(AppState())
    with pytest.raises(ValidationError):
        validate_polling(AppState(poll_delay_seconds=-1))
    with pytest.raises(ValidationError):
        validate_polling(AppState(ready_timeout_seconds=0))
