"""Application context holding the runtime's dependencies."""

from assistant_core.core.dependencies import AppDependencies
from assistant_core.utils.logging import get_logger

logger = get_logger("core.app_context")


class AppContext:
    """Owns the bootstrapped dependencies and shuts them down on close."""

    def __init__(self, dependencies: AppDependencies | None = None) -> None:
        """Initialize the application context.

        Args:
            dependencies: Optional pre-initialized dependencies
        """
        self._dependencies = dependencies
        self._closed = False

    @property
    def deps(self) -> AppDependencies:
        """Get the application dependencies.

        Raises:
            RuntimeError: If dependencies are not initialized
        """
        if self._dependencies is None:
            raise RuntimeError(
                "Dependencies not initialized. Did you call bootstrap()?"
            )
        return self._dependencies

    def close(self) -> None:
        """Stop the change notifier and close the store. Safe to call twice."""
        if self._closed or self._dependencies is None:
            return
        self._closed = True

        deps = self._dependencies
        if deps.notifier is not None:
            deps.notifier.stop()
        deps.store.close()
        logger.debug("Application context closed")

    def __enter__(self) -> "AppContext":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
