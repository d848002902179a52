"""
Error types for gh-project-pilot.

Every user-facing failure is a PilotError. The CLI prints the message on a
single line and exits with the error's exit_code.
"""

EXIT_INPUT_ERROR = 2
EXIT_ENV_ERROR = 1


class PilotError(Exception):
    """Base class for errors reported to the user."""
    exit_code = EXIT_ENV_ERROR


class BacklogError(PilotError):
    """Backlog document is unreadable or does not match the schema."""
    exit_code = EXIT_INPUT_ERROR


class DuplicateIdError(BacklogError):
    """Two or more backlog items share an id."""

    def __init__(self, duplicates: list[str]):
        self.duplicates = sorted(duplicates)
        super().__init__(f"Duplicate item ids: {', '.join(self.duplicates)}")


class TemplateError(PilotError):
    """Template is missing required placeholders or cannot be read."""
    exit_code = EXIT_INPUT_ERROR


class SummaryError(PilotError):
    """Summary CSV is malformed."""
    exit_code = EXIT_INPUT_ERROR


class ConfigError(PilotError):
    """Configuration file is missing or invalid."""
    exit_code = EXIT_INPUT_ERROR


class UnsafeCleanTarget(PilotError):
    """Refused to delete an output directory that looks dangerous."""
    exit_code = EXIT_INPUT_ERROR


class PublishError(PilotError):
    """Publishing stopped: gh failed or drafts could not be matched."""
    exit_code = EXIT_ENV_ERROR
