"""Exception hierarchy shared by the client, tool handlers and CLI."""

from __future__ import annotations


class MoegirlError(RuntimeError):
    """Base class for failures surfaced to CLI users and tool callers."""


class MoegirlAPIError(MoegirlError):
    """Raised when the wiki API cannot be reached or answers with an error."""


class ConfigError(MoegirlError, ValueError):
    """Raised when the configuration file is malformed."""


class ToolError(MoegirlError, ValueError):
    """Raised when a tool is unknown or called with invalid arguments."""


__all__ = ["ConfigError", "MoegirlAPIError", "MoegirlError", "ToolError"]
