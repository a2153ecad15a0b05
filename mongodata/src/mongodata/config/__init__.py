from .config import (
    APP_ENV,
    Config,
    EnvConfig,
    MongoConfig,
    RepositoriesConfig,
    load_config,
    reset_config,
)

__all__ = [
    "APP_ENV",
    "Config",
    "EnvConfig",
    "MongoConfig",
    "RepositoriesConfig",
    "load_config",
    "reset_config",
]
