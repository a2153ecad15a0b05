from pydantic import BaseModel, Field
from typing import Dict, Any, Type


class Context(BaseModel):
    """Process wide registries filled at import time by decorators."""

    component_registry: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    modules: set[str] = Field(default_factory=set)
    # fragment interface -> implementation class
    fragments: Dict[Type[Any], Type[Any]] = Field(default_factory=dict)


context = Context()
