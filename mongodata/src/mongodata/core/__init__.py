from .template import MongoTemplate
from .reactive import ReactiveMongoTemplate
from .session import SessionScoped

__all__ = ["MongoTemplate", "ReactiveMongoTemplate", "SessionScoped"]
