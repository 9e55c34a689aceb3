"""Helpers that derived error types call at run time."""

from __future__ import annotations

import traceback
from os import PathLike
from pathlib import PurePath
from typing import Any


class Request:
    """Collects the values an error chain offers, such as a backtrace.

    The first value offered wins; later offers are ignored.
    """

    __slots__ = ("_backtrace",)

    def __init__(self) -> None:
        self._backtrace: Any = None

    @property
    def backtrace(self) -> Any:
        """The backtrace provided so far, or None."""
        return self._backtrace

    @property
    def fulfilled(self) -> bool:
        """Whether a backtrace has already been provided."""
        return self._backtrace is not None

    def provide_backtrace(self, backtrace: Any) -> Request:
        """Offer a backtrace; it is kept only if none was offered before."""
        if self._backtrace is None and backtrace is not None:
            self._backtrace = backtrace
        return self

    def __repr__(self) -> str:
        return f"Request(backtrace={self._backtrace!r})"


def as_dyn_error(value: Any) -> BaseException:
    """Return ``value`` as an error, or raise TypeError if it is not one."""
    if isinstance(value, BaseException):
        return value
    raise TypeError(f"{type(value).__name__} is not an error type")


def as_display(value: Any) -> Any:
    """Return something that formats ``value`` for people to read.

    Paths are shown as their string form; everything else is returned as is.
    """
    if isinstance(value, PurePath):
        return str(value)
    if isinstance(value, PathLike):
        path = value.__fspath__()
        if isinstance(path, bytes):
            return path.decode("utf-8", errors="replace")
        return path
    return value


def thiserror_provide(value: Any, request: Request) -> None:
    """Let ``value`` offer what it holds to ``request``.

    Objects with a ``provide`` method are asked directly.  Other exceptions
    that were raised offer the stack recorded in their traceback.
    """
    provide = getattr(value, "provide", None)
    if callable(provide):
        provide(request)
        return
    if isinstance(value, BaseException) and value.__traceback__ is not None:
        request.provide_backtrace(traceback.extract_tb(value.__traceback__))


def request_backtrace(error: Any) -> Any:
    """Return the backtrace that ``error`` provides, or None."""
    request = Request()
    thiserror_provide(error, request)
    return request.backtrace