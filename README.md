# derror

`derror` works with declarative descriptions of error types. You describe
an error as a structure (named fields, positional fields or none) or as an
enumeration of variants, attach a little metadata, and the package:

- collects and checks that metadata,
- works out which field is the source, the conversion field and the
  backtrace,
- rejects descriptions that make no sense, with a precise `DeriveError`,
- renders the display message for a given set of field values.

It needs nothing outside the standard library and runs on Python 3.10 and
later.

## Example

```python
from derror.attr import error, source
from derror.ast import parse_enum, parse_struct
from derror.fmt import render
from derror.valid import validate

node = validate(
    parse_struct(
        "ReadError",
        [error("failed to read '{path}'")],
        [("path", "str"), ("cause", "OSError", [source])],
    )
)
render(node.attrs.display, {"path": "/tmp/data", "cause": OSError()})
# "failed to read '/tmp/data'"
node.source_field().member
# "cause"

kinds = validate(
    parse_enum(
        "Kind",
        [],
        [
            ("Braced", [error("braced error: {id}")], [("id", "int")]),
            ("Tuple", [error("tuple error: {0}")], [(None, "int")]),
            ("Unit", [error("unit error")]),
        ],
    )
)
render(kinds.variants[1].attrs.display, {0: 7})
# "tuple error: 7"
```

## Describing an error

Metadata is a list of `derror.attr.Attribute` values:

- `error("template", *args, **kwargs)` — the display message.
- `error(transparent)` — forward message and source to the only field;
  `transparent` is the marker object in `derror.attr`.
- `source`, `backtrace`, `from_` — bare field markers.

`derror.ast.parse_struct(name, attributes, fields)` takes fields as
`(name, type)` or `(name, type, attributes)` tuples; a name of `None`
makes a positional field addressed by its index. Types may be strings
(`"Option[OSError]"`, `"Backtrace"`) or typing objects (`Optional[...]`,
`X | None`, `TypeVar`s).

`derror.ast.parse_enum(name, attributes, variants)` takes variants as
`(name, attributes, fields)` tuples, or a bare name. A variant with no
message inherits the enumeration's message, or else its transparency.

The resulting `Struct`, `Enum`, `Variant` and `Field` objects answer
`from_field()`, `source_field()` (marked `source` or `from_`, else a field
named `source`), `backtrace_field()` (marked `backtrace`, else of type
`Backtrace`), `distinct_backtrace_field()`, `Field.is_option()`,
`Field.is_backtrace()`, and on enumerations `has_source()`,
`has_backtrace()` and `has_display()`.

## Messages

`derror.fmt.expand_shorthand(display, fields)` rewrites field references
in a template (`parse_struct` and `parse_enum` call it for you) and
`render(display, values)` produces the text, where `values` maps field
names or indices to values. Templates support:

- `{}`, `{0}`, `{name}`, and `{{`/`}}` for literal braces;
- explicit keyword arguments, which win over a field of the same name;
- specs `?` (debug: quoted strings, `true`/`false`, `None`), `x`, `X`,
  `o`, `b`, `e`, `E`, `p`, with fill, alignment, sign, `#`, zero padding,
  width and precision;
- extra arguments that are callables, called with a view of the fields
  (`view.name`, `view[0]`).

`explicit_named_args(kwargs)` returns the names given explicitly.

## Validation

`derror.valid.validate(node)` (or `validate_struct` / `validate_enum`)
returns the node unchanged or raises `DeriveError` for, among others:
duplicate `error`, `source`, `from_`, `backtrace` or transparent markers;
a transparent type without exactly one field or with a `source` field;
both a transparent marker and a message; `from_` on a field other than the
source; a `from_` error with fields other than the source and a backtrace;
variants of which only some have messages; two variants converting from
the same type; field markers on the type; a message on a field; and
non-`'static` lifetimes in a source type written as a string.
`derror.attr.get(attributes)` performs the per-item checks and returns an
`Attrs`.

## Runtime helpers

`derror.runtime` offers `Request` (first backtrace offered through
`provide_backtrace` wins), `thiserror_provide(value, request)` (calls the
value's `provide`, or offers a raised exception's traceback),
`request_backtrace(error)`, `as_dyn_error(value)` (rejects non-exceptions
with `TypeError`) and `as_display(value)` (paths as their string form).

## What it does not do

The package describes, checks and renders; it does not build error
classes. There is no class decorator or exception base class: nothing
attaches a `__str__`, a `source()` or a `provide()` method to your
classes, no conversion constructor is generated for a `from_` field, and
no backtrace is captured automatically. Your own code decides how to use
the validated description and the rendered message.