from pathlib import PurePosixPath
from types import SimpleNamespace

import pytest

from derror.attr import DeriveError, Trait, error, get
from derror.fmt import expand_shorthand, explicit_named_args, render


def _display(attribute, members):
    display = get([attribute]).display
    expand_shorthand(display, [SimpleNamespace(member=m) for m in members])
    return display


def show(attribute, values):
    return render(_display(attribute, list(values)), values)


def test_braced():
    assert show(error("braced error: {msg}"), {"msg": "T"}) == "braced error: T"


def test_braced_unused():
    assert show(error("braced error"), {"extra": 0}) == "braced error"


def test_tuple():
    assert show(error("tuple error: {0}"), {0: 0}) == "tuple error: 0"


def test_unit():
    assert show(error("unit error"), {}) == "unit error"


def test_constants():
    attribute = error("{MSG}: {id:?} (code {CODE:?})", MSG="failed to do", CODE=9)
    assert show(attribute, {"id": ""}) == 'failed to do: "" (code 9)'


def test_brace_escape():
    assert show(error("fn main() {{}}"), {}) == "fn main() {}"


def test_expr():
    assert show(error("1 + 1 = {}", 1 + 1), {}) == "1 + 1 = 2"


def test_nested():
    assert show(error("!bool = {}", lambda f: not f[0]), {0: True}) == "!bool = false"


def test_match():
    def message(f):
        if f[1] is not None:
            return f"error occurred with {f[1]}"
        return "there was an empty error"

    attribute = error("{}: {0}", message)
    assert show(attribute, {0: "...", 1: 1}) == "error occurred with 1: ..."
    assert show(attribute, {0: "...", 1: None}) == "there was an empty error: ..."


def test_mixed():
    attribute = error("a={a} :: b={} :: c={c} :: d={d}", 1, c=2, d=3)
    assert show(attribute, {"a": 0, "d": 0}) == "a=0 :: b=1 :: c=2 :: d=3"


def test_ints():
    assert show(error("error {0}"), {0: 9, 1: 0}) == "error 9"
    assert show(error("error {0}", "?"), {"v": 0}) == "error ?"


def test_field():
    attribute = error("{}", lambda f: f[0].data)
    assert show(attribute, {0: SimpleNamespace(data=0)}) == "0"


def test_debug_of_int():
    assert show(error("{0:?}"), {0: 0}) == "0"


def test_raw():
    assert show(error("braced raw error: {r#fn}"), {"r#fn": "T"}) == "braced raw error: T"


def test_raw_conflict():
    attribute = error("braced raw error: {r#func}, {func}", func="U")
    assert show(attribute, {"r#func": "T"}) == "braced raw error: T, U"


def test_keyword():
    assert show(error("error: {type}", **{"type": 1}), {}) == "error: 1"


def test_rcc():
    attribute = error(
        "cannot shift {} by {maximum} or more bits (got {current})",
        lambda f: "left" if f.is_left else "right",
    )
    values = {"is_left": True, "maximum": 32, "current": 50}
    assert show(attribute, values) == "cannot shift left by 32 or more bits (got 50)"

    user = error("#error {}", lambda f: " ".join(f[0]))
    assert show(user, {0: ["A", "B", "C"]}) == "#error A B C"

    def signedness(f):
        if f.is_signed is None:
            return ""
        return "signed " if f.is_signed else "unsigned "

    overflow = error("overflow while parsing {}integer literal", signedness)
    assert (
        show(overflow, {"is_signed": True})
        == "overflow while parsing signed integer literal"
    )


def test_rustup():
    attribute = error(
        "toolchain '{name}' does not contain component {component}{}",
        lambda f: "" if f.suggestion is None else f"; did you mean '{f.suggestion}'?",
    )
    values = {"name": "nightly", "component": "clipy", "suggestion": "clippy"}
    assert (
        show(attribute, values)
        == "toolchain 'nightly' does not contain component clipy; did you mean 'clippy'?"
    )


def test_path_display():
    display = _display(error("failed to read '{file}'"), ["file"])
    assert display.has_bonus_display is True
    assert render(display, {"file": PurePosixPath("/thiserror")}) == "failed to read '/thiserror'"


def test_generic_compound():
    class DisplayOnly:
        def __str__(self):
            return "display only"

    class DebugOnly:
        def __repr__(self):
            return "DebugOnly"

    attribute = error("{0} {1:?}")
    assert show(attribute, {0: DisplayOnly(), 1: DebugOnly()}) == "display only DebugOnly"


def test_expand_records_bounds():
    display = _display(error("{0:?}"), [0])
    assert display.fmt == "{field__0:?}"
    assert display.implied_bounds == frozenset({(0, Trait.DEBUG)})
    assert display.has_bonus_display is False


def test_explicit_named_args():
    assert explicit_named_args({"a": 1, "b": 2}) == {"a", "b"}


def test_unknown_name_raises():
    with pytest.raises(DeriveError):
        show(error("{missing}"), {})


def test_unmatched_brace_raises():
    with pytest.raises(DeriveError):
        show(error("oops }"), {})