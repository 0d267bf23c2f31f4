"""Error taxonomy shared by the domain, services and HTTP layer."""

from typing import Any


class TaskFlowError(Exception):
    """Base class for every error raised by taskflow."""


class ValidationError(TaskFlowError, ValueError):
    """Malformed input (empty id, blank title, negative sort order...)."""


class InvalidOperationError(TaskFlowError):
    """Operation is inconsistent with the current state of an aggregate."""


class TenantIsolationError(InvalidOperationError):
    """A reference crosses subscription boundaries."""


class EntityNotFoundError(TaskFlowError):
    """Referenced entity does not exist within the expected scope."""

    def __init__(self, entity_name: str, entity_id: Any):
        super().__init__(f"{entity_name} with id '{entity_id}' was not found.")
        self.entity_name = entity_name
        self.entity_id = entity_id


class AuthenticationError(TaskFlowError):
    """Credentials or token were rejected."""
