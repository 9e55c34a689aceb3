import traceback
from pathlib import Path, PurePosixPath

import pytest

from derror.runtime import (
    Request,
    as_display,
    as_dyn_error,
    request_backtrace,
    thiserror_provide,
)


class _Provider:
    def __init__(self, backtrace):
        self.backtrace = backtrace
        self.calls = 0

    def provide(self, request):
        self.calls += 1
        request.provide_backtrace(self.backtrace)


def test_request_starts_empty():
    request = Request()
    assert request.backtrace is None
    assert request.fulfilled is False


def test_request_first_backtrace_wins():
    first = traceback.extract_stack()
    second = traceback.extract_stack()
    request = Request()
    assert request.provide_backtrace(first) is request
    request.provide_backtrace(second)
    assert request.backtrace is first
    assert request.fulfilled is True


def test_request_ignores_none():
    request = Request()
    request.provide_backtrace(None)
    assert request.fulfilled is False
    marker = traceback.extract_stack()
    request.provide_backtrace(marker)
    assert request.backtrace is marker


def test_as_dyn_error_returns_same_error():
    err = OSError("oh no!")
    assert as_dyn_error(err) is err


def test_as_dyn_error_rejects_non_errors():
    with pytest.raises(TypeError, match="str is not an error type"):
        as_dyn_error("not an error")


def test_as_display_path():
    assert f"failed to read '{as_display(PurePosixPath('/thiserror'))}'" == (
        "failed to read '/thiserror'"
    )


def test_as_display_concrete_path_matches_str():
    path = Path("some") / "file.txt"
    assert as_display(path) == str(path)


def test_as_display_passes_other_values_through():
    value = object()
    assert as_display(value) is value
    assert as_display(7) == 7


def test_thiserror_provide_calls_provide_method():
    marker = traceback.extract_stack()
    provider = _Provider(marker)
    request = Request()
    thiserror_provide(provider, request)
    assert provider.calls == 1
    assert request.backtrace is marker


def test_thiserror_provide_fresh_exception_gives_nothing():
    request = Request()
    thiserror_provide(ValueError("fresh"), request)
    assert request.fulfilled is False


def test_request_backtrace_from_raised_exception():
    try:
        raise ValueError("boom")
    except ValueError as caught:
        err = caught
    backtrace = request_backtrace(err)
    assert isinstance(backtrace, traceback.StackSummary)
    assert backtrace[-1].name == "test_request_backtrace_from_raised_exception"


def test_request_backtrace_uses_provider():
    marker = traceback.extract_stack()
    assert request_backtrace(_Provider(marker)) is marker


def test_request_backtrace_none_for_plain_objects():
    assert request_backtrace(object()) is None