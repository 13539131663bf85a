"""Error kinds raised while planning and rendering stacks."""

from __future__ import annotations


class SetupError(Exception):
    """Base class for recoverable setup errors."""


class InvalidChoice(SetupError):
    """Raised when a choice prompt receives an unrecognized value."""


class DomainNotListed(SetupError):
    """Raised when a picked domain is not part of the collected domains."""


class NoRoleSelected(SetupError):
    """Raised when neither the CDN nor the direct role is assigned."""


class MissingTemplate(SetupError):
    """Raised when an expected template file does not exist."""


class MissingRequiredInput(SetupError):
    """Raised when a group is enabled but a required value is empty."""
