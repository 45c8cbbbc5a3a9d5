"""
Decorators for adding tracing to functions.
"""

import functools
import inspect

from .context import trace_operation


def _table_attribute(signature: inspect.Signature, args, kwargs) -> str | None:
    try:
        bound = signature.bind_partial(*args, **kwargs)
    except TypeError:
        return None
    definition = bound.arguments.get("definition")
    return getattr(definition, "qualified_name", None)


def trace_function(operation_name: str | None = None, **default_attributes):
    """
    Decorator for tracing function calls.

    Functions taking an enum definition as their ``definition`` argument get
    a ``table`` span attribute naming the table they work on.

    Args:
        operation_name: Optional custom operation name (defaults to function name)
        **default_attributes: Default attributes to add to all spans

    Example:
        >>> @trace_function(component="planner")
        ... def create_plan(definition, existing_rows, deletion_mode):
        ...     ...
    """
    def decorator(func):
        signature = inspect.signature(func)
        name = operation_name or f"{func.__module__}.{func.__name__}"

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            attributes = {**default_attributes, "function": func.__name__}
            table = _table_attribute(signature, args, kwargs)
            if table:
                attributes["table"] = table

            with trace_operation(name, **attributes):
                return func(*args, **kwargs)

        return wrapper
    return decorator
