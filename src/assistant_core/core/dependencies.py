"""Application dependencies container."""

from dataclasses import dataclass, field

from assistant_core.config.schemas import RuntimeSettings
from assistant_core.debug.tracer import DebugTracer
from assistant_core.modules.builtin import DebugModule, LearningModule
from assistant_core.modules.dispatcher import Dispatcher
from assistant_core.modules.handlers import HandlerTable
from assistant_core.modules.registry import ModuleRegistry
from assistant_core.runtime.notifier import ChangeNotifier
from assistant_core.store.config_store import ConfigStore


@dataclass
class AppDependencies:
    """Container for the runtime components, handed to collaborators explicitly."""

    settings: RuntimeSettings
    store: ConfigStore
    notifier: ChangeNotifier | None = field(default=None)
    registry: ModuleRegistry | None = field(default=None)
    tracer: DebugTracer | None = field(default=None)
    handlers: HandlerTable | None = field(default=None)
    dispatcher: Dispatcher | None = field(default=None)
    learning: LearningModule | None = field(default=None)
    debug_module: DebugModule | None = field(default=None)
    _initialized: bool = field(default=False, init=False, repr=False)

    def mark_initialized(self) -> None:
        """Mark dependencies as fully initialized."""
        self._initialized = True

    def is_initialized(self) -> bool:
        """Check if all dependencies are initialized."""
        return self._initialized
