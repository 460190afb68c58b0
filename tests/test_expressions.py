from core.expressions import (
    Expression,
    Literal,
    Variable,
    evaluate,
    parse_expression,
    render,
    string_value,
)


def test_plain_string_is_not_an_expression():
    assert parse_expression("Hello world") is None
    assert parse_expression("") is None
    assert parse_expression("costs $5 {not a ref}") is None


def test_render_leaves_literals_unchanged(context):
    assert render("Hello world", context) == "Hello world"


def test_parse_splits_literals_and_variables():
    expr = parse_expression("Hello ${foo} world")
    assert isinstance(expr, Expression)
    assert expr.segments == (
        Literal("Hello "),
        Variable("foo", ("foo",)),
        Literal(" world"),
    )


def test_adjacent_variables_have_no_empty_literals():
    expr = parse_expression("${a}${b.c}")
    assert expr.segments == (
        Variable("a", ("a",)),
        Variable("b.c", ("b", "c")),
    )


def test_parse_is_pure():
    assert parse_expression("x ${a.b} y") == parse_expression("x ${a.b} y")


def test_literal_newlines_become_spaces():
    expr = parse_expression("line one\nline two ${x}")
    assert expr.segments[0] == Literal("line one line two ")


def test_needed_keys_are_dataset_names():
    expr = parse_expression("${viewer.id}/${owner.id}/${viewer.name}")
    assert expr.needed_keys == frozenset({"viewer", "owner"})


def test_scenario_hello_foo_world(context):
    context.put_data_set("foo", "Hello")
    assert evaluate(parse_expression("Hello ${foo} world"), context) == "Hello Hello world"


def test_single_variable_returns_native_value(context):
    person = {"name": {"first": "Ada"}, "friends": [1, 2]}
    context.put_data_set("test", person)
    context.put_data_set("n", 42)

    assert evaluate(parse_expression("${test}"), context) is person
    assert evaluate(parse_expression("${test.name.first}"), context) == "Ada"
    assert evaluate(parse_expression("${test.friends}"), context) == [1, 2]
    assert evaluate(parse_expression("${n}"), context) == 42


def test_mixed_expression_stringifies_variables(context):
    context.put_data_set("data", {"ids": [1, [2, 3]], "score": 2.0, "ratio": 0.5})
    expr = parse_expression("ids=${data.ids} score=${data.score} ratio=${data.ratio}")
    assert evaluate(expr, context) == "ids=1,2,3 score=2 ratio=0.5"


def test_missing_data_is_not_an_error(context):
    assert evaluate(parse_expression("${nothing}"), context) is None
    assert evaluate(parse_expression("${nothing.deeper.still}"), context) is None
    assert evaluate(parse_expression("Hi ${nothing.name}!"), context) == "Hi !"


def test_path_indexes_into_lists(context):
    context.put_data_set("people", [{"name": "a"}, {"name": "b"}])
    assert evaluate(parse_expression("${people.1.name}"), context) == "b"
    assert evaluate(parse_expression("${people[0].name}"), context) == "a"
    assert evaluate(parse_expression("${people.5.name}"), context) is None


def test_path_falls_back_to_attributes(context):
    class Person:
        display_name = "Grace"

    context.put_data_set("viewer", Person())
    assert evaluate(parse_expression("${viewer.display_name}"), context) == "Grace"


def test_path_never_reaches_private_or_callable_attributes(context):
    class Person:
        display_name = "Grace"

        def __init__(self):
            self._token = "secret"

        def greet(self):
            return "hi"

    context.put_data_set("viewer", Person())
    for path in ("viewer.__init__.__globals__.os.sep", "viewer.__class__",
                 "viewer._token", "viewer.greet"):
        assert evaluate(parse_expression("${" + path + "}"), context) is None


def test_negative_index_is_not_resolved(context):
    context.put_data_set("people", [{"name": "a"}, {"name": "b"}])
    assert evaluate(parse_expression("${people.-1.name}"), context) is None
    assert evaluate(parse_expression("${people.1.name}"), context) == "b"


def test_booleans_and_special_floats_render_like_javascript(context):
    context.put_data_set("f", True)
    context.put_data_set("n", float("nan"))
    context.put_data_set("i", float("-inf"))
    context.put_data_set("flags", [True, False])
    assert render("x=${f} y=${n} z=${i} [${flags}]", context) == (
        "x=true y=NaN z=-Infinity [true,false]"
    )
    assert render("${f}", context) is True


def test_string_value_rules():
    assert string_value(["a", ["b", ["c"]], 4]) == "a,b,c,4"
    assert string_value(7) == "7"
    assert string_value(3.0) == "3"
    assert string_value(1.25) == "1.25"
    assert string_value("text") == "text"
    obj = {"k": "v"}
    assert string_value(obj) is obj
    assert string_value(True) is True
    assert string_value(None) is None
