"""Application bootstrap sequence and dependency injection."""

import logging

from assistant_core.config.env_manager import EnvManager
from assistant_core.config.schemas import RuntimeSettings
from assistant_core.config.settings_manager import SettingsManager
from assistant_core.core.app_context import AppContext
from assistant_core.core.dependencies import AppDependencies
from assistant_core.debug.tracer import DebugTracer
from assistant_core.modules.builtin import DebugModule, LearningModule
from assistant_core.modules.dispatcher import Dispatcher
from assistant_core.modules.handlers import default_handler_table
from assistant_core.modules.registry import ModuleRegistry
from assistant_core.runtime.notifier import ChangeNotifier
from assistant_core.store.config_store import ConfigStore
from assistant_core.utils.logging import get_logger, parse_level, setup_logging

logger = get_logger("core.bootstrap")

# Config key that switches tracing on at startup
DEBUG_MODE_KEY = "debug_mode"


def _setup_environment() -> None:
    """Load .env files so they feed the settings layers."""
    env_manager = EnvManager()
    try:
        env_manager.load_env_files()
    except Exception as e:
        logger.warning("Failed to load .env files: %s", e, exc_info=True)


def bootstrap(
    settings: RuntimeSettings | None = None,
    *,
    start_notifier: bool = True,
    log_level: int | None = None,
) -> AppContext:
    """Initialize the runtime and return its context.

    Args:
        settings: Pre-resolved settings; loaded from YAML/env when omitted
        start_notifier: Start the background change-detection loop
        log_level: Override log level

    Returns:
        AppContext whose ``deps`` holds every component

    Raises:
        RuntimeError: If initialization fails
    """
    setup_logging(level=log_level or logging.INFO)

    store: ConfigStore | None = None
    notifier: ChangeNotifier | None = None
    try:
        logger.debug("Starting application bootstrap")

        if settings is None:
            _setup_environment()
            settings = SettingsManager().load()
        if log_level is None:
            setup_logging(level=parse_level(settings.log_level, default=logging.INFO))

        store = ConfigStore(settings.db_path)
        deps = AppDependencies(settings=settings, store=store)

        notifier = ChangeNotifier(
            store.max_version,
            poll_interval=settings.poll_interval,
            max_workers=settings.notifier_workers,
        )
        deps.notifier = notifier
        deps.registry = ModuleRegistry(store, notifier)

        deps.tracer = DebugTracer(
            store if settings.debug.persist else None,
            capacity=settings.debug.capacity,
        )
        if settings.debug.enabled or store.get_bool(DEBUG_MODE_KEY):
            deps.tracer.enable()

        deps.handlers = default_handler_table()
        deps.dispatcher = Dispatcher(deps.registry, deps.tracer, deps.handlers)

        if settings.load_builtin_modules:
            deps.learning = LearningModule(deps.registry, store)
            deps.debug_module = DebugModule(
                deps.registry, store, deps.tracer, trace_all=settings.debug.trace_all
            )

        ctx = AppContext(dependencies=deps)

        if start_notifier:
            notifier.start()

        deps.mark_initialized()
        logger.info("Application bootstrap completed successfully")
        return ctx

    except Exception as e:
        logger.critical("Failed to bootstrap application", exc_info=True)
        if notifier is not None:
            notifier.stop()
        if store is not None:
            store.close()
        raise RuntimeError("Failed to initialize application") from e
