"""DEBUG tracing helpers shared by the solver engines."""

from __future__ import annotations

import inspect
import logging
import reprlib
from functools import wraps
from typing import Any, Callable, Iterable, MutableMapping, Optional, Sequence, Set, TypeVar, cast

import numpy as np

F = TypeVar("F", bound=Callable[..., Any])

_repr = reprlib.Repr()
_repr.maxother = 120
_repr.maxlist = 8
_repr.maxtuple = 8
_repr.maxdict = 8


def _describe_array(value: np.ndarray) -> str:
    parts = [f"ndarray(shape={tuple(value.shape)}, dtype={value.dtype})"]
    if value.size == 0:
        return parts[0]
    if value.size <= 4:
        parts.append(f"values={_repr.repr(value.tolist())}")
    elif np.isfinite(value).all():
        parts.append(f"min={float(value.min()):.6g}")
        parts.append(f"max={float(value.max()):.6g}")
    else:
        parts.append("non-finite")
    return ", ".join(parts)


def safe_repr(value: Any, *, max_items: int = 4, max_length: int = 300) -> str:
    """Return a short, log-friendly representation of ``value``."""

    if isinstance(value, np.ndarray):
        return _describe_array(value)

    x = getattr(value, "x", None)
    y = getattr(value, "y", None)
    if isinstance(x, (int, float)) and isinstance(y, (int, float)):
        return f"{type(value).__name__}({x:.6g}, {y:.6g})"

    if isinstance(value, (list, tuple)):
        items = [safe_repr(item) for item in value[:max_items]]
        if len(value) > max_items:
            items.append(f"... +{len(value) - max_items}")
        open_br, close_br = ("(", ")") if isinstance(value, tuple) else ("[", "]")
        return open_br + ", ".join(items) + close_br

    try:
        rendered = _repr.repr(value)
    except Exception as exc:  # pragma: no cover - repr of third-party objects
        rendered = f"<repr-error {exc!r}>"
    if len(rendered) > max_length:
        return rendered[:max_length] + "... (truncated)"
    return rendered


def _format_arguments(args: Sequence[Any], kwargs: MutableMapping[str, Any]) -> str:
    parts = []
    if args:
        parts.append("args=[" + ", ".join(safe_repr(arg) for arg in args) + "]")
    if kwargs:
        parts.append("kwargs={" + ", ".join(f"{k}={safe_repr(v)}" for k, v in kwargs.items()) + "}")
    return ", ".join(parts) if parts else "no-args"


def debug_log_call(
    logger: logging.Logger, *, name: Optional[str] = None, log_result: bool = True
) -> Callable[[F], F]:
    """Return a decorator that emits DEBUG logs on entry and exit of a call."""

    def decorator(func: F) -> F:
        if getattr(func, "_debug_logging_wrapped", False):
            return func

        qualname = name or getattr(func, "__qualname__", getattr(func, "__name__", "<callable>"))

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any):
            if not logger.isEnabledFor(logging.DEBUG):
                return func(*args, **kwargs)
            logger.debug("Entering %s (%s)", qualname, _format_arguments(args, kwargs))
            try:
                result = func(*args, **kwargs)
            except Exception:
                logger.debug("Exception in %s", qualname, exc_info=True)
                raise
            if log_result:
                logger.debug("Exiting %s -> %s", qualname, safe_repr(result))
            else:
                logger.debug("Exiting %s", qualname)
            return result

        setattr(wrapper, "_debug_logging_wrapped", True)
        return cast(F, wrapper)

    return decorator


def _wrap_class(cls: type, logger: logging.Logger, skip: Set[str]) -> None:
    for attr_name, attr_value in list(cls.__dict__.items()):
        if attr_name.startswith("_"):
            continue
        qualified = f"{cls.__name__}.{attr_name}"
        if attr_name in skip or qualified in skip:
            continue
        if isinstance(attr_value, staticmethod):
            wrapped = debug_log_call(logger, name=qualified)(attr_value.__func__)
            setattr(cls, attr_name, staticmethod(wrapped))
        elif isinstance(attr_value, classmethod):
            wrapped = debug_log_call(logger, name=qualified)(attr_value.__func__)
            setattr(cls, attr_name, classmethod(wrapped))
        elif inspect.isfunction(attr_value) and attr_value.__module__ == cls.__module__:
            setattr(cls, attr_name, debug_log_call(logger, name=qualified)(attr_value))


def apply_debug_logging(
    namespace: MutableMapping[str, Any],
    *,
    logger: Optional[logging.Logger] = None,
    skip: Optional[Iterable[str]] = None,
    wrap_methods: bool = True,
) -> None:
    """Wrap the public callables of a module namespace with DEBUG tracing.

    Private helpers (leading underscore) are left alone since they run inside
    the per-sweep hot loops.
    """

    module_name = namespace.get("__name__")
    if not isinstance(module_name, str):  # pragma: no cover - always set for modules
        module_name = None
    logger = logger or logging.getLogger(module_name or __name__)
    skip_set: Set[str] = set(skip or [])

    for name, value in list(namespace.items()):
        if name.startswith("_") or name in skip_set:
            continue
        if inspect.isfunction(value) and value.__module__ == module_name:
            namespace[name] = debug_log_call(logger, name=name)(value)
        elif wrap_methods and inspect.isclass(value) and value.__module__ == module_name:
            _wrap_class(value, logger, skip_set)
