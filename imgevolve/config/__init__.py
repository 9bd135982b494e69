from imgevolve.config.session_config import (
    DEFAULT_CONFIG_PATH,
    LoggingConfig,
    SessionConfig,
    build_task_state,
    load_config,
    setup_logging,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "LoggingConfig",
    "SessionConfig",
    "build_task_state",
    "load_config",
    "setup_logging",
]
