import json
from datetime import date, datetime, timedelta, timezone

import pytest

from py_color_json.colors import BRIGHT_BLUE, CYAN, DEFAULT_PALETTE, GREEN, PLAIN_PALETTE, RED, RESET, WHITE
from py_color_json.context import Context
from py_color_json.levels import Severity
from py_color_json.records import CYCLE, Attr, SourceLocation, group
from py_color_json.render import (
    DATE_ONLY,
    RFC3339,
    RFC3339_MICRO,
    TIME_ONLY,
    SourceMode,
    format_timestamp,
    render_event,
    render_value,
    resolve_time_format,
)

SOURCE = SourceLocation(function="app.handlers.create_user", file="/srv/app/handlers.py", line=42)


# --- Scalars ---
@pytest.mark.unit
@pytest.mark.parametrize(
    "value, expected",
    [
        (None, "null"),
        (True, "true"),
        (False, "false"),
        (42, "42"),
        (-7, "-7"),
        (3.14, "3.14"),
        ("hello world", '"hello world"'),
        ('say "hi"', r'"say \"hi\""'),
        ("line\nbreak\ttab", r'"line\nbreak\ttab"'),
        ("back\\slash", r'"back\\slash"'),
        (float("nan"), '"NaN"'),
        (float("inf"), '"+Inf"'),
        (float("-inf"), '"-Inf"'),
        (date(2024, 5, 28), '"2024-05-28"'),
        (Severity.WARN, "30"),
    ],
)
def test_render_value_plain(value, expected):
    """Tests that each scalar kind renders as its JSON literal."""
    assert render_value(value, PLAIN_PALETTE) == expected


@pytest.mark.unit
def test_render_value_falls_back_to_str():
    """Tests that a value with no JSON literal renders as its quoted str()."""
    class Opaque:
        def __str__(self):
            return "opaque<1>"

    assert render_value(Opaque(), PLAIN_PALETTE) == '"opaque<1>"'


@pytest.mark.unit
def test_render_value_wraps_in_category_color():
    """Tests that scalars are wrapped in their category color and reset."""
    assert render_value("x") == f'{GREEN}"x"{RESET}'
    assert render_value(None) == f"{WHITE}null{RESET}"
    assert render_value(True) == f"{DEFAULT_PALETTE.boolean}true{RESET}"


# --- Time formats ---
@pytest.mark.unit
def test_format_timestamp():
    """Tests the named and strftime time formats on a UTC timestamp."""
    ts = datetime(2024, 5, 28, 12, 34, 56, 123456, tzinfo=timezone.utc)
    assert format_timestamp(ts, RFC3339) == "2024-05-28T12:34:56Z"
    assert format_timestamp(ts, RFC3339_MICRO) == "2024-05-28T12:34:56.123456Z"
    assert format_timestamp(ts, DATE_ONLY) == "2024-05-28"
    assert format_timestamp(ts) == "12:34:56"


@pytest.mark.unit
def test_format_timestamp_keeps_non_utc_offsets():
    """Tests that RFC 3339 output keeps an offset other than UTC."""
    ts = datetime(2024, 5, 28, 12, 34, 56, tzinfo=timezone(timedelta(hours=2)))
    assert format_timestamp(ts, RFC3339) == "2024-05-28T12:34:56+02:00"


@pytest.mark.unit
def test_resolve_time_format_aliases():
    """Tests that aliases expand and other patterns pass through."""
    assert resolve_time_format(None) == TIME_ONLY
    assert resolve_time_format("Date") == DATE_ONLY
    assert resolve_time_format("rfc3339") == RFC3339
    assert resolve_time_format("%d/%m/%Y") == "%d/%m/%Y"


# --- Whole events ---
@pytest.mark.unit
def test_render_basic_event(make_event, strip):
    """Tests the plainest event: time, level, msg and one field."""
    line = render_event(make_event(foo="bar"), time_format=RFC3339)

    assert strip(line) == '{"time":"2024-05-28T12:34:56Z","level":"INFO","msg":"hello","foo":"bar"}\n'


@pytest.mark.unit
def test_render_event_with_context_group(make_event, strip):
    """Tests that a context group nests the event's fields."""
    context = Context().with_group("http")
    line = render_event(make_event(method="POST", status=200), context, time_format=RFC3339)

    assert strip(line) == (
        '{"time":"2024-05-28T12:34:56Z","level":"INFO","msg":"hello",'
        '"http":{"method":"POST","status":200}}\n'
    )


@pytest.mark.unit
def test_render_numbers_and_bool(make_event, strip):
    """Tests that numbers and booleans render unquoted."""
    event = make_event("warn msg", Severity.WARN, int=42, float=3.14, bool=True)
    line = render_event(event, time_format=RFC3339)

    assert strip(line) == (
        '{"time":"2024-05-28T12:34:56Z","level":"WARN","msg":"warn msg",'
        '"int":42,"float":3.14,"bool":true}\n'
    )


@pytest.mark.unit
@pytest.mark.parametrize(
    "time_format, expected_time",
    [(DATE_ONLY, "2024-05-28"), (TIME_ONLY, "12:34:56"), (None, "12:34:56")],
)
def test_render_time_formats(make_event, strip, time_format, expected_time):
    """Tests that the chosen time format shapes the `time` field."""
    line = render_event(make_event("t", foo="bar"), time_format=time_format)

    assert strip(line) == f'{{"time":"{expected_time}","level":"INFO","msg":"t","foo":"bar"}}\n'


@pytest.mark.unit
def test_render_is_colorized(make_event):
    """Tests that braces, level, keys and values carry their colors."""
    line = render_event(make_event("boom", Severity.ERROR, foo="bar"))

    assert line.startswith(f"{BRIGHT_BLUE}{{{RESET}")
    assert f'{RED}"ERROR"{RESET}' in line
    assert f'{CYAN}"foo"{RESET}:{GREEN}"bar"{RESET}' in line
    assert line.endswith(f"{BRIGHT_BLUE}}}{RESET}\n")


@pytest.mark.unit
def test_render_with_plain_palette_has_no_escape_sequences(make_event):
    """Tests that the plain palette yields uncolored JSON."""
    line = render_event(make_event(foo="bar", n=None), palette=PLAIN_PALETTE)
    assert "\x1b" not in line
    assert json.loads(line)["n"] is None


# --- Source location ---
@pytest.mark.unit
def test_render_source_full(make_event, strip):
    """Tests that full source mode adds a nested `source` object."""
    line = render_event(make_event("src full", source=SOURCE), time_format=DATE_ONLY, source_mode=SourceMode.FULL)

    assert strip(line) == (
        '{"time":"2024-05-28","level":"INFO","msg":"src full",'
        '"source":{"function":"app.handlers.create_user","file":"/srv/app/handlers.py","line":42}}\n'
    )


@pytest.mark.unit
def test_render_source_short_file(make_event, strip):
    """Tests that short source mode writes the file's base name and line."""
    line = render_event(make_event("src", source=SOURCE), time_format=DATE_ONLY, source_mode=SourceMode.SHORT_FILE)

    assert strip(line) == '{"time":"2024-05-28","level":"INFO","msg":"src","file":"handlers.py:42"}\n'


@pytest.mark.unit
def test_render_source_long_file(make_event, strip):
    """Tests that long source mode writes the full path and line."""
    line = render_event(make_event("src", source=SOURCE), time_format=DATE_ONLY, source_mode=SourceMode.LONG_FILE)

    assert strip(line) == '{"time":"2024-05-28","level":"INFO","msg":"src","file":"/srv/app/handlers.py:42"}\n'


@pytest.mark.unit
def test_render_source_off_or_missing(make_event, strip):
    """Tests that no source field appears when the mode is off or no source is known."""
    assert '"source"' not in strip(render_event(make_event(source=SOURCE)))
    assert '"file"' not in strip(render_event(make_event(), source_mode=SourceMode.SHORT_FILE))


@pytest.mark.unit
def test_source_mode_parse():
    """Tests source mode parsing, including the error for an unknown mode."""
    assert SourceMode.parse("SHORT") is SourceMode.SHORT_FILE
    with pytest.raises(ValueError, match="Unknown source mode: 'medium'"):
        SourceMode.parse("medium")


# --- Groups and nesting ---
@pytest.mark.unit
def test_nested_context_groups_close_outer_last(make_event, strip):
    """Tests that nested context groups close innermost first."""
    context = Context().with_group("a").with_group("b")
    line = strip(render_event(make_event(x=1), context))

    assert line.endswith('"a":{"b":{"x":1}}}\n')


@pytest.mark.unit
def test_empty_context_group_renders_empty_object(make_event, strip):
    """Tests that a context group with no fields renders as {}."""
    line = strip(render_event(make_event(), Context().with_group("http"), time_format=DATE_ONLY))

    assert line == '{"time":"2024-05-28","level":"INFO","msg":"hello","http":{}}\n'


@pytest.mark.unit
def test_event_group_attribute_renders_nested_object(make_event, strip):
    """Tests that a group attribute renders in place as a nested object."""
    event = make_event(
        "req",
        Severity.INFO,
        Attr("int", 42),
        group("http", Attr("method", "GET"), Attr("path", "/api/v1/users"), Attr("status", 200)),
        Attr("after", True),
    )
    line = strip(render_event(event, time_format=DATE_ONLY))

    assert line == (
        '{"time":"2024-05-28","level":"INFO","msg":"req","int":42,'
        '"http":{"method":"GET","path":"/api/v1/users","status":200},"after":true}\n'
    )


@pytest.mark.unit
def test_mapping_and_sequence_values(make_event, strip):
    """Tests that mappings render as objects and sequences as arrays."""
    event = make_event(
        details={"path": "/var/log/app.log", "code": 404, "permissions": False},
        tags=["a", 1, None, {"k": "v"}],
        empty=[],
    )
    line = strip(render_event(event, time_format=DATE_ONLY))

    assert line == (
        '{"time":"2024-05-28","level":"INFO","msg":"hello",'
        '"details":{"path":"/var/log/app.log","code":404,"permissions":false},'
        '"tags":["a",1,null,{"k":"v"}],"empty":[]}\n'
    )


@pytest.mark.unit
def test_context_attrs_precede_grouped_event_attrs(make_event, strip):
    """Tests that persisted fields stay at the top level ahead of the groups."""
    context = Context().with_fields((Attr("trace_id", "xyz789"),)).with_group("request")
    line = strip(render_event(make_event(method="POST", status=200), context, time_format=DATE_ONLY))

    assert line == (
        '{"time":"2024-05-28","level":"INFO","msg":"hello","trace_id":"xyz789",'
        '"request":{"method":"POST","status":200}}\n'
    )


@pytest.mark.unit
def test_duplicate_keys_pass_through(make_event, strip):
    """Tests that repeated keys are written as given."""
    event = make_event("dup", Severity.INFO, Attr("a", 1), Attr("a", 2))
    assert strip(render_event(event)).endswith('"a":1,"a":2}\n')


# --- Attribute rewrite hook ---
@pytest.mark.unit
def test_replace_attr_receives_group_path(make_event):
    """Tests that the rewrite hook sees each attribute with its group path."""
    calls = []

    def record_calls(groups, attr):
        calls.append((groups, attr.key))
        return attr

    context = Context().with_fields((Attr("user", "u1"),)).with_group("http")
    event = make_event("req", Severity.INFO, Attr("method", "POST"), group("headers", Attr("auth", "x")))
    render_event(event, context, replace_attr=record_calls)

    assert calls == [((), "user"), (("http",), "method"), (("http", "headers"), "auth")]


@pytest.mark.unit
@pytest.mark.parametrize(
    "attrs, expected_tail",
    [
        ((Attr("a", 1), Attr("password", "s3cret")), '"msg":"hello","a":1}\n'),
        ((Attr("password", "s3cret"), Attr("a", 1)), '"msg":"hello","a":1}\n'),
        ((Attr("password", "s3cret"),), '"msg":"hello"}\n'),
        ((group("g", Attr("password", "s3cret")),), '"msg":"hello","g":{}}\n'),
    ],
)
def test_replace_attr_suppression_leaves_no_stray_separator(make_event, strip, attrs, expected_tail):
    """Tests that dropping attributes never leaves a dangling comma."""
    def drop_password(groups, attr):
        if attr.key == "password":
            return Attr("", None)
        return attr

    line = strip(render_event(make_event("hello", Severity.INFO, *attrs), replace_attr=drop_password))

    assert line.endswith(expected_tail)
    assert ",}" not in line


@pytest.mark.unit
def test_replace_attr_can_transform_and_return_none(make_event, strip):
    """Tests that the hook can rename attributes or drop them with None."""
    def rewrite(groups, attr):
        if attr.key == "drop":
            return None
        return Attr(attr.key.upper(), attr.value)

    line = strip(render_event(make_event(keep=1, drop=2), replace_attr=rewrite))

    assert line.endswith('"msg":"hello","KEEP":1}\n')


@pytest.mark.unit
def test_replace_attr_not_applied_to_builtin_fields(make_event, strip):
    """Tests that time, level and msg bypass the hook."""
    seen = []
    render_event(make_event(), replace_attr=lambda groups, attr: seen.append(attr.key) or attr)
    assert seen == []


# --- Output invariants ---
@pytest.mark.unit
def test_stripped_output_is_compact_json_in_field_order(make_event, strip):
    """Tests that stripped output is compact JSON in the documented field order."""
    context = Context().with_fields((Attr("svc", "api"),)).with_group("job")
    event = make_event(
        'quote " and unicode é',
        Severity.DEBUG,
        Attr("n", 1),
        Attr("f", 2.5),
        Attr("ok", False),
        Attr("none", None),
        group("inner", Attr("deep", group("deeper", Attr("x", "y")))),
    )
    body = strip(render_event(event, context, source_mode=SourceMode.FULL))

    assert body.endswith("}\n")
    assert not body[:-1].endswith(" ")
    body = body[:-1]
    assert json.dumps(json.loads(body), separators=(",", ":"), ensure_ascii=False) == body
    assert list(json.loads(body)) == ["time", "level", "msg", "svc", "job"]
    assert ",}" not in body and ",]" not in body


# --- Self-referencing and wrapped values ---
@pytest.mark.unit
def test_self_referencing_list_renders_cycle_marker(make_event, strip):
    """Tests that a list containing itself renders the repeat as a marker."""
    loop = []
    loop.append(loop)

    line = strip(render_event(make_event(loop=loop), time_format=DATE_ONLY))

    assert line.endswith('"msg":"hello","loop":["<cycle>"]}\n')
    assert json.loads(line)["loop"] == [CYCLE]


@pytest.mark.unit
def test_self_referencing_mapping_renders_cycle_marker(make_event, strip):
    """Tests that a mapping containing itself renders the repeat as a marker."""
    d = {"name": "root"}
    d["self"] = d

    line = strip(render_event(make_event(d=d), time_format=DATE_ONLY))

    assert json.loads(line)["d"] == {"name": "root", "self": CYCLE}


@pytest.mark.unit
def test_cycle_through_list_and_mapping_terminates(make_event, strip):
    """Tests that a cycle running through both a list and a mapping still renders."""
    d = {}
    d["items"] = [d]

    payload = json.loads(strip(render_event(make_event(d=d))))

    assert CYCLE in json.dumps(payload["d"])


@pytest.mark.unit
def test_shared_value_is_not_a_cycle(make_event, strip):
    """Tests that the same container appearing twice side by side renders in full."""
    shared = [1, 2]

    payload = json.loads(strip(render_event(make_event(a=shared, b={"x": shared, "y": shared}))))

    assert payload["a"] == [1, 2]
    assert payload["b"] == {"x": [1, 2], "y": [1, 2]}


@pytest.mark.unit
def test_attr_valued_attribute_keeps_its_key(make_event, strip):
    """Tests that an Attr used as a value nests under the outer key."""
    line = strip(render_event(make_event("m", Severity.INFO, Attr("outer", Attr("inner", 1)))))

    assert line.endswith('"msg":"m","outer":{"inner":1}}\n')


# --- Time format resolution ---
@pytest.mark.unit
def test_naive_timestamp_is_treated_as_utc_in_rfc3339():
    """Tests that RFC 3339 output always carries an offset."""
    naive = datetime(2024, 5, 28, 12, 34, 56, 123456)

    assert format_timestamp(naive, RFC3339) == "2024-05-28T12:34:56Z"
    assert format_timestamp(naive, RFC3339_MICRO) == "2024-05-28T12:34:56.123456Z"


@pytest.mark.unit
@pytest.mark.parametrize(
    "alias, expected_time",
    [("date", "2024-05-28"), ("RFC3339", "2024-05-28T12:34:56Z"), ("datetime", "2024-05-28 12:34:56")],
)
def test_render_event_resolves_time_format_aliases(make_event, strip, alias, expected_time):
    """Tests that render_event accepts named formats as well as patterns."""
    payload = json.loads(strip(render_event(make_event(), time_format=alias)))

    assert payload["time"] == expected_time
