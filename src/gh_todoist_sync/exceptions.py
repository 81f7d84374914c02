"""
Exception hierarchy for gh-todoist-sync.

Only conditions that end a run are raised as exceptions. Failures scoped
to a single repository or work item are reported as ApiResult values by
the HTTP clients and absorbed by the sync driver.
"""


class GitHubTodoistSyncError(Exception):
    """Base exception for all gh-todoist-sync errors."""

    def __init__(self, message: str, hint: str | None = None) -> None:
        self.message = message
        self.hint = hint
        super().__init__(message)

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message}\n\nHint: {self.hint}"
        return self.message


# API Errors


class TodoistAPIError(GitHubTodoistSyncError):
    """Todoist API returned an error that cannot be skipped."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        status_info = f" (HTTP {status_code})" if status_code else ""
        self.status_code = status_code
        super().__init__(
            f"Todoist API error{status_info}: {message}",
            "Check that TODOIST_TOKEN is valid",
        )


class ProjectNotFoundError(GitHubTodoistSyncError):
    """The target Todoist project does not exist."""

    def __init__(self, project_name: str) -> None:
        super().__init__(
            f"Todoist project not found: '{project_name}'",
            "Create the project in Todoist or pass --project with an existing name",
        )
        self.project_name = project_name


# State File Errors


class StateFileError(GitHubTodoistSyncError):
    """Failed to write the last-sync state file."""

    def __init__(self, file_path: str, details: str = "") -> None:
        message = f"Failed to write sync state '{file_path}'"
        if details:
            message = f"{message}: {details}"
        super().__init__(
            message,
            "Check that you have write permissions and the directory exists",
        )


# Configuration Errors


class ConfigError(GitHubTodoistSyncError):
    """Configuration error."""

    def __init__(self, message: str, hint: str | None = None) -> None:
        super().__init__(message, hint)


class MissingTokenError(ConfigError):
    """An API token was not supplied."""

    def __init__(self, service: str, env_var: str) -> None:
        super().__init__(
            f"{service} API token not configured",
            f"Set {env_var} in the environment or a .env file",
        )
