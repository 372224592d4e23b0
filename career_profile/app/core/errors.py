import logging

log = logging.getLogger(__name__)


class ProfileEngineError(Exception):
    """Base class for errors raised by the profile reconciliation engine."""


class ResourceNotFoundError(ProfileEngineError):
    """A record does not exist or is not owned by the requesting user.

    Attributes:
        resource (str): Human readable kind of the missing record.
        resource_id (int | None): The identifier that was looked up.

    """

    def __init__(self, resource: str, resource_id: int | None = None):
        self.resource = resource
        self.resource_id = resource_id
        if resource_id is None:
            message = f"{resource} not found"
        else:
            message = f"{resource} {resource_id} not found or access denied"
        super().__init__(message)


class AchievementMergeError(ProfileEngineError, ValueError):
    """The merge oracle returned output that cannot be trusted.

    Raised for unparseable responses, schema mismatches and completeness
    check failures. Subclasses ValueError so callers that only know the
    generic LLM failure contract still catch it.

    Attributes:
        missing_indices (list[int]): 1-indexed input statements the output did not account for.

    """

    def __init__(self, message: str, missing_indices: list[int] | None = None):
        self.missing_indices = missing_indices or []
        super().__init__(message)


class SkillAssignmentConflictError(ProfileEngineError):
    """The user already has this skill linked to a work history record."""

    def __init__(self, skill_name: str):
        self.skill_name = skill_name
        super().__init__(
            f"You already have the skill '{skill_name}' linked to your profile"
        )
