from typing import Optional
from pydantic import BaseModel
from mongodata.ioc import component, ProviderType
from mongodata.util import get_path
from dotenv import load_dotenv
import os
import yaml


config: Optional["Config"] = None


load_dotenv(get_path(".env"))
APP_ENV = os.getenv("APP_ENV", "production")


class RepositoriesConfig(BaseModel):
    # pre-parse derived query methods when repository classes are built
    generated: bool = True


class MongoConfig(BaseModel):
    uri: str = "mongodb://localhost:27017"
    database: str = "test"
    auditing: bool = True
    reactive: bool = False
    repositories: RepositoriesConfig = RepositoriesConfig()


class EnvConfig(BaseModel):
    log_level: str = "INFO"
    telemetry: bool = False


def load_config(path: Optional[str] = None) -> "Config":
    global config
    if config is None:
        if path is None:
            path = get_path("config.yaml")
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        env_config = EnvConfig(**(data.get(APP_ENV) or {}))

        filtered_data = {
            k: v for k, v in data.items() if k not in ("development", "production")
        }
        filtered_data["env"] = env_config

        config = Config(**filtered_data)

    return config


def reset_config() -> None:
    global config
    config = None


def _load_config():
    return load_config()


@component(provider_type=ProviderType.FACTORY, factory=_load_config)
class Config(BaseModel):
    name: str = "mongodata"
    version: str = "1.0.0"
    mongodb: MongoConfig = MongoConfig()
    env: EnvConfig = EnvConfig()
