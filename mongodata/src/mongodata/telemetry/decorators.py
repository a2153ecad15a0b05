from opentelemetry import trace
import functools
import inspect


def traced_class(methods=None):
    """Wrap the public methods of a class (sync and async) in spans."""

    def decorator(cls):
        tracer = trace.get_tracer(cls.__module__)

        target_methods = methods or [
            name
            for name, value in vars(cls).items()
            if not name.startswith("_") and inspect.isfunction(value)
        ]

        def create_traced_method(original, name):
            span_name = f"{cls.__name__}.{name}"
            if inspect.iscoroutinefunction(original):

                @functools.wraps(original)
                async def async_wrapper(self, *args, **kwargs):
                    with tracer.start_as_current_span(span_name) as span:
                        span.set_attribute("method_name", name)
                        span.set_attribute("method_type", "async")
                        return await original(self, *args, **kwargs)

                return async_wrapper

            @functools.wraps(original)
            def sync_wrapper(self, *args, **kwargs):
                with tracer.start_as_current_span(span_name) as span:
                    span.set_attribute("method_name", name)
                    span.set_attribute("method_type", "sync")
                    return original(self, *args, **kwargs)

            return sync_wrapper

        for method_name in target_methods:
            original_method = vars(cls).get(method_name)
            if original_method is not None and inspect.isfunction(original_method):
                setattr(cls, method_name, create_traced_method(original_method, method_name))

        return cls

    return decorator
