from contextlib import contextmanager
from typing import Optional

from opentelemetry import trace
from pymongo.errors import PyMongoError

from mongodata.exceptions import translate_exception

tracer = trace.get_tracer(__name__)


class MongoTracingMixin:
    """Client spans following the OTel database conventions."""

    _database_name: str = ""

    @contextmanager
    def _traced(self, operation: str, collection: str, db_statement: Optional[str] = None):
        with tracer.start_as_current_span(
            f"mongodb.{operation} {collection}", kind=trace.SpanKind.CLIENT
        ) as span:
            span.set_attribute("db.system", "mongodb")
            span.set_attribute("db.name", self._database_name)
            span.set_attribute("db.collection.name", collection)
            span.set_attribute("db.operation", operation)
            span.set_attribute(
                "code.namespace", f"{self.__class__.__module__}.{self.__class__.__name__}"
            )
            if db_statement:
                span.set_attribute("db.statement", db_statement)
            try:
                yield span
            except PyMongoError as e:
                translated = translate_exception(e)
                span.record_exception(translated)
                span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
                raise translated from e
            except Exception as e:
                span.record_exception(e)
                span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
                raise
            else:
                span.set_status(trace.Status(trace.StatusCode.OK))
