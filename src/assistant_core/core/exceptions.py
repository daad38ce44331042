class AssistantError(Exception):
    """Base exception for all assistant core errors.

    The message is automatically prefixed with the subsystem name in square brackets.
    """

    subsystem = "core"

    def __init__(self, message: str, *, subsystem: str | None = None) -> None:
        self.subsystem = subsystem or self.subsystem
        super().__init__(f"[{self.subsystem}] {message}")


# ─── Subsystem-level exceptions ───────────────────────────────────────────────


class StoreError(AssistantError):
    """Raised when the persistent store cannot be read or written."""

    subsystem = "store"


class ConfigError(AssistantError):
    """Raised for runtime settings loading or parsing errors."""

    subsystem = "config"


class ModuleRegistrationError(AssistantError):
    """Raised when a module or hook cannot be registered.

    The module row may already be committed when this is raised; registration
    calls are idempotent upserts and can simply be retried.
    """

    subsystem = "modules"


class HookHandlerError(AssistantError):
    """Raised by a hook handler that cannot process its context."""

    subsystem = "hooks"


class CLIError(AssistantError):
    """Raised for CLI-specific logic or user input issues."""

    subsystem = "cli"
