from functools import wraps
from typing import Callable

_sentinel = object()


def run_once(func: Callable) -> Callable:
    """
    Decorator that restricts `func` to a single execution. Repeated calls return the value of the first call.

    The wrapper exposes ``reset()`` to forget the cached value, which lets tests swap configuration between cases.

    :param func: The decorated function
    """
    result = _sentinel

    @wraps(func)
    def func_run_once(*args, **kwargs):
        nonlocal result

        if result is _sentinel:
            result = func(*args, **kwargs)

        return result

    def reset() -> None:
        nonlocal result
        result = _sentinel

    func_run_once.reset = reset

    return func_run_once
