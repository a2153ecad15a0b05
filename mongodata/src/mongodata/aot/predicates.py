import importlib.util
from typing import Callable, Optional

from mongodata.core.convert import MongoSimpleTypes

ModulePresent = Callable[[str], bool]

SYNC_DRIVER_MODULE = "pymongo"
REACTIVE_DRIVER_MODULE = "motor"


def is_module_present(name: str) -> bool:
    try:
        return importlib.util.find_spec(name) is not None
    except (ImportError, ValueError):
        return False


def is_sync_client_present(module_present: Optional[ModulePresent] = None) -> bool:
    return (module_present or is_module_present)(SYNC_DRIVER_MODULE)


def is_reactive_client_present(module_present: Optional[ModulePresent] = None) -> bool:
    return (module_present or is_module_present)(REACTIVE_DRIVER_MODULE)


def is_simple_type(candidate: type) -> bool:
    return MongoSimpleTypes.is_simple_type(candidate)
