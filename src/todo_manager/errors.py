"""Error kinds raised by the operators.

Callers are expected to branch on the exception class; messages carry the
entity kind and id for diagnostics only.
"""

from __future__ import annotations


class TodoManagerError(Exception):
    """Base class for every error raised by the library."""

    pass


class OptionsNotImplementedError(TodoManagerError, NotImplementedError):
    """The source does not provide the capability combination an operator needs."""

    pass


class EntityNotFoundError(TodoManagerError):
    pass


class SavingRequiredError(TodoManagerError):
    """An id was requested from an entity that has not been saved yet."""

    pass


class BoardTaskWithoutStepError(TodoManagerError):
    """A board lists a task without a step assignment for it."""

    pass


class InvalidFlowStepError(TodoManagerError):
    # Reserved for step-validity checks on boards.
    pass


class FlowStepInUseError(TodoManagerError):
    """A flow step still referenced by tasks was detached or deleted."""

    pass


class InvalidBoardAssociationError(TodoManagerError):
    pass


class EntityTypeMismatchError(TodoManagerError, ValueError):
    """Entity props name a ``type`` other than the kind being built."""

    pass
