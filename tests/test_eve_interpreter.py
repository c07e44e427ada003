import math

import pytest

from eve import run, inspect
from eve.eve_interpreter import Evaluator, unwrap_return
from eve.eve_datatypes import (
    Environment, Number, String, Array, Hash, Function,
    Builtin, Return, Error, NULL, TRUE, FALSE,
)
from eve.eve_runtime import parse


def eval_src(src: str, env=None):
    return run(src, env if env is not None else Environment())


def assert_value(src, expected):
    result = eval_src(src)
    assert result == expected, f"{src!r} -> {inspect(result)}"


# Literals

@pytest.mark.parametrize("src, expected", [
    ("1", Number(1)),
    ("5", Number(5)),
    ("1.234", Number(1.234)),
    ("'eve'", String("eve")),
    ("'hello, world'", String("hello, world")),
    ("true", TRUE),
    ("false", FALSE),
    ("null", NULL),
])
def test_literals(src, expected):
    assert_value(src, expected)


def test_empty_program_is_null():
    assert eval_src("") == NULL
    assert eval_src("// just a comment") == NULL

# Prefix operators

@pytest.mark.parametrize("src, expected", [
    ("!true", FALSE),
    ("!false", TRUE),
    ("!2", FALSE),
    ("!0", FALSE),
    ("!''", FALSE),
    ("![]", FALSE),
    ("!!true", TRUE),
    ("!!false", FALSE),
    ("!!2", TRUE),
    ("!!'x'", TRUE),
    ("!null", NULL),
    ("!!null", NULL),
])
def test_bang_operator(src, expected):
    assert_value(src, expected)


@pytest.mark.parametrize("src, expected", [
    ("-1", Number(-1)),
    ("-10", Number(-10)),
    ("--5", Number(5)),
    ("+7", Number(7)),
    ("-(2 + 3)", Number(-5)),
])
def test_numeric_prefix_operators(src, expected):
    assert_value(src, expected)


@pytest.mark.parametrize("src, message", [
    ("-true", "unknown operator: -Boolean"),
    ("-'a'", "unknown operator: -String"),
    ("+null", "unknown operator: +Null"),
    ("-[1]", "unknown operator: -Array"),
])
def test_numeric_prefix_requires_number(src, message):
    assert eval_src(src) == Error(message)

# Infix operators

@pytest.mark.parametrize("src, expected", [
    ("1 + 2", Number(3)),
    ("5 - 7", Number(-2)),
    ("3 * 4", Number(12)),
    ("7 / 2", Number(3.5)),
    ("2 + 3 * 4", Number(14)),
    ("(2 + 3) * 4", Number(20)),
    ("10 / 4 * 2", Number(5)),
    ("0.1 + 0.2", Number(0.1 + 0.2)),
    ("1 < 2", TRUE),
    ("1 > 2", FALSE),
    ("2 <= 2", TRUE),
    ("3 >= 4", FALSE),
    ("1 == 1", TRUE),
    ("1 != 1", FALSE),
    ("1 + 1 == 2", TRUE),
    ("1 < 2 == true", TRUE),
])
def test_number_arithmetic_and_comparison(src, expected):
    assert_value(src, expected)


def test_division_follows_ieee():
    assert eval_src("1 / 0") == Number(math.inf)
    assert eval_src("-1 / 0") == Number(-math.inf)
    assert math.isnan(eval_src("0 / 0").value)
    assert inspect(eval_src("1 / 0")) == "Infinity"


def test_nan_is_unequal_to_itself():
    assert eval_src("0 / 0 == 0 / 0") == FALSE
    assert eval_src("let n = 0 / 0; n != n") == TRUE
    assert eval_src("1 / 0 == 1 / 0") == TRUE


@pytest.mark.parametrize("src, expected", [
    ("'hello' + ' ' + 'world'", String("hello world")),
    ("'a' == 'a'", TRUE),
    ("'a' != 'b'", TRUE),
    ("true == true", TRUE),
    ("true != false", TRUE),
    ("null == null", TRUE),
    ("[1, 2] == [1, 2]", TRUE),
    ("[1, 2] == [2, 1]", FALSE),
    ("({'a': 1} == {'a': 1})", TRUE),
])
def test_same_type_operators(src, expected):
    assert_value(src, expected)


@pytest.mark.parametrize("src, expected", [
    ("1 == '1'", FALSE),
    ("1 != '1'", TRUE),
    ("null == false", FALSE),
    ("0 == false", FALSE),
    ("[] != {}", TRUE),
])
def test_equality_across_types(src, expected):
    assert_value(src, expected)


@pytest.mark.parametrize("src, message", [
    ("5 + true", "type mismatch: Number + Boolean"),
    ("'a' + 1", "type mismatch: String + Number"),
    ("1 < 'b'", "type mismatch: Number < String"),
    ("null * 2", "type mismatch: Null * Number"),
    ("'hello' - 'world'", "unknown operator: String - String"),
    ("'a' < 'b'", "unknown operator: String < String"),
    ("true + false", "unknown operator: Boolean + Boolean"),
    ("[1] + [2]", "unknown operator: Array + Array"),
])
def test_operator_errors(src, message):
    assert eval_src(src) == Error(message)

# Errors short-circuit

def test_error_stops_the_program():
    assert eval_src("5 + true; 5;") == Error("type mismatch: Number + Boolean")


def test_error_short_circuits_enclosing_expressions():
    assert eval_src("-(5 + true) * 2") == Error("type mismatch: Number + Boolean")
    assert eval_src("[1, 5 + true, missing]") == Error("type mismatch: Number + Boolean")
    assert eval_src("({'a': missing, 'b': 5 + true})") == Error("missing is not defined")


def test_error_inside_block_and_function():
    src = """
    let f = fn() {
      let a = 1 + true;
      return 10;
    };
    f();
    99;
    """
    assert eval_src(src) == Error("type mismatch: Number + Boolean")


def test_error_is_never_stored():
    env = Environment()
    result = eval_src("let a = 1 + true;", env)
    assert result == Error("type mismatch: Number + Boolean")
    assert env.get("a") is None


def test_left_operand_error_skips_right_operand():
    env = Environment()
    eval_src("let x = 0;", env)
    result = eval_src("missing + (x = 1)", env)
    assert result == Error("missing is not defined")
    assert env.get("x") == Number(0)

# Names and bindings

def test_let_binds_and_yields_value():
    assert_value("let a = 5;", Number(5))
    assert_value("let a = 5; a;", Number(5))
    assert_value("let a = 5 * 5; a;", Number(25))
    assert_value("let a = 5; let b = a; let c = a + b + 5; c;", Number(15))


def test_let_without_initializer_is_null():
    assert_value("let a; a", NULL)


@pytest.mark.parametrize("expr", [
    "1 + 2", "'x' + 'y'", "[1, [2]]", "{'k': 1}", "!true", "null", "-(3 * 4)",
])
def test_let_round_trip(expr):
    assert eval_src(f"let x = {expr}; x;") == eval_src(f"({expr});")


def test_identifier_not_defined():
    assert eval_src("foobar") == Error("foobar is not defined")


def test_assignment():
    assert_value("let foo = 1; foo = 2;", Number(2))
    assert_value("let foo = 1; foo = foo + 1; foo", Number(2))
    assert_value("let a = 1; let b = 2; a = b = 3; a + b", Number(6))


def test_assignment_to_undefined_name():
    assert eval_src("nope = 1") == Error("nope is not defined")


def test_assignment_target_must_be_a_name():
    assert eval_src("let a = [1]; a[0] = 2") == Error("invalid assignment target: a[0]")
    assert eval_src("1 = 2") == Error("invalid assignment target: 1")


def test_assignment_updates_the_owning_scope():
    src = """
    let count = 0;
    let bump = fn() { count = count + 1; };
    bump(); bump(); bump();
    count;
    """
    assert_value(src, Number(3))


def test_let_inside_function_shadows():
    src = """
    let x = 1;
    let f = fn() { let x = 2; x };
    f() + x;
    """
    assert_value(src, Number(3))


def test_environment_persists_between_runs():
    env = Environment()
    eval_src("let a = 10;", env)
    assert eval_src("a * 2", env) == Number(20)

# Control flow

@pytest.mark.parametrize("src, expected", [
    ("if (true) { 10 }", Number(10)),
    ("if (false) { 10 }", NULL),
    ("if (1) { 10 }", Number(10)),
    ("if (0) { 10 }", Number(10)),
    ("if (null) { 10 } else { 20 }", Number(20)),
    ("if (1 < 2) { 10 } else { 20 }", Number(10)),
    ("if (1 > 2) { 10 } else { 20 }", Number(20)),
    ("if (1 > 2) 10; else 20;", Number(20)),
    ("if (false) 1; else if (true) 2; else 3;", Number(2)),
])
def test_if_else(src, expected):
    assert_value(src, expected)


def test_if_condition_error():
    assert eval_src("if (1 + true) { 1 }") == Error("type mismatch: Number + Boolean")


@pytest.mark.parametrize("src, expected", [
    ("return 10;", Number(10)),
    ("return 10; 9;", Number(10)),
    ("return 2 * 5; 9;", Number(10)),
    ("9; return 2 * 5; 9;", Number(10)),
    ("if (true) { if (true) { return 1; } } 10;", Number(1)),
    ("if (10 > 1) { if (10 > 1) { return 10; } return 1; }", Number(10)),
    ("return;", NULL),
])
def test_return(src, expected):
    assert_value(src, expected)


def test_blocks_share_the_enclosing_scope():
    assert_value("{ let a = 3; } a", Number(3))


def test_block_value_is_last_statement():
    assert_value("{ 1; 2; 3 }", Number(3))
    assert_value("{ }", NULL)


def test_while_loop():
    src = """
    let i = 0;
    let total = 0;
    while (i < 5) {
      i = i + 1;
      total = total + i;
    }
    total;
    """
    assert_value(src, Number(15))


def test_while_yields_last_body_value_or_null():
    assert_value("let i = 0; while (i < 3) i = i + 1;", Number(3))
    assert_value("while (false) { 1 }", NULL)


def test_return_inside_while_leaves_the_function():
    src = """
    let find = fn(xs, target) {
      let i = 0;
      while (i < xs.length) {
        if (xs[i] == target) { return i; }
        i = i + 1;
      }
      return -1;
    };
    [find([5, 6, 7], 7), find([5, 6, 7], 9)];
    """
    assert_value(src, Array([Number(2), Number(-1)]))

# Functions and closures

def test_function_literal_captures_environment():
    env = Environment()
    fn = eval_src("fn(x) { x + 2; };", env)
    assert isinstance(fn, Function)
    assert fn.params.names == ("x",)
    assert fn.env is env
    assert inspect(fn) == "fn(x) { (x + 2); }"


@pytest.mark.parametrize("src, expected", [
    ("let identity = fn(x) { x; }; identity(5);", Number(5)),
    ("let identity = fn(x) { return x; }; identity(5);", Number(5)),
    ("let double = fn(x) { x * 2; }; double(5);", Number(10)),
    ("let add = fn(x, y) { x + y; }; add(5, 5);", Number(10)),
    ("let add = fn(x, y) { x + y; }; add(5 + 5, add(5, 5));", Number(20)),
    ("fn(x) { x; }(5)", Number(5)),
    ("(fn(x){return [x*x]})(2)[0]", Number(4)),
    ("let sum = fn(x, y) { return x + y }; sum(1, 2);", Number(3)),
    ("let f = fn() { }; f()", NULL),
])
def test_function_application(src, expected):
    assert_value(src, expected)


def test_missing_arguments_stay_unbound_and_extra_ones_are_ignored():
    assert_value("let f = fn(a) { a }; f(1, 2, 3)", Number(1))
    # An unbound parameter falls through to the defining scope.
    assert_value("let x = 5; let f = fn(x) { x }; f()", Number(5))
    assert_value("let b = 'outer'; let f = fn(a, b) { [a, b] }; f(1)",
                 Array([Number(1), String("outer")]))
    assert eval_src("let f = fn(a, b) { b }; f(1)") == Error("b is not defined")


def test_closures_capture_by_reference():
    assert_value("let make = fn(x) { return fn(y) { return x + y } }; make(1)(2)", Number(3))
    src = """
    let x = 1;
    let f = fn() { x };
    x = 5;
    f();
    """
    assert_value(src, Number(5))


def test_sibling_closures_share_scope():
    src = """
    let counter = fn() {
      let n = 0;
      return {
        'inc': fn() { n = n + 1 },
        'get': fn() { n }
      };
    };
    let c = counter();
    c.inc(); c.inc();
    let d = counter();
    d.inc();
    [c.get(), d.get()];
    """
    assert_value(src, Array([Number(2), Number(1)]))


def test_closure_outlives_defining_call():
    src = """
    let adder = fn(a) { fn(b) { a + b } };
    let add2 = adder(2);
    let add10 = adder(10);
    [add2(1), add10(1)];
    """
    assert_value(src, Array([Number(3), Number(11)]))


def test_recursion():
    src = """
    let fib = fn(n) { if (n < 2) { return n; } return fib(n - 1) + fib(n - 2); };
    fib(15);
    """
    assert_value(src, Number(610))


def test_lambdas():
    assert_value("let sq = x => x * x; sq(4)", Number(16))
    assert_value("let add = (a, b) => a + b; add(2, 3)", Number(5))
    assert_value("let k = () => 42; k()", Number(42))
    assert_value("let curry = a => b => a - b; curry(10)(3)", Number(7))


def test_return_inside_nested_blocks_unwinds_to_call():
    src = """
    let f = fn(x) {
      if (x > 0) { if (x > 10) { return 'big'; } return 'small'; }
      'negative';
    };
    [f(50), f(5), f(-1)];
    """
    assert_value(src, Array([String("big"), String("small"), String("negative")]))


@pytest.mark.parametrize("src, message", [
    ("1()", "not a function: Number"),
    ("let a = 'x'; a()", "not a function: String"),
    ("null(1)", "not a function: Null"),
    ("[1](0)", "not a function: Array"),
])
def test_calling_non_functions(src, message):
    assert eval_src(src) == Error(message)


def test_argument_errors_short_circuit():
    assert eval_src("let f = fn(a, b) { a }; f(1, missing)") == Error("missing is not defined")
    assert eval_src("missing(1 + true)") == Error("missing is not defined")

# Collections

def test_array_literal():
    assert_value("[1, 2 * 2, 3 + 3]", Array([Number(1), Number(4), Number(6)]))


@pytest.mark.parametrize("src, expected", [
    ("[1, 2, 3][0]", Number(1)),
    ("[1, 2, 3][1]", Number(2)),
    ("[1, 2, 3][2]", Number(3)),
    ("let i = 0; [1][i];", Number(1)),
    ("[1, 2, 3][1 + 1];", Number(3)),
    ("let myArray = [1, 2, 3]; myArray[0] + myArray[1] + myArray[2];", Number(6)),
    ("[1, 2, 3][3]", NULL),
    ("[1, 2, 3][-1]", NULL),
    ("[1, 2, 3][0.5]", NULL),
    ("[1, 2, 3]['0']", NULL),
    ("[][0]", NULL),
])
def test_array_indexing_is_total(src, expected):
    assert_value(src, expected)


def test_hash_literal_keys_are_rendered_text():
    result = eval_src("let two = 'two'; ({'one': 10 - 9, two: 1 + 1, 1 + 2: '3', true: 5, null: 6})")
    assert result == Hash({
        "one": Number(1),
        "two": Number(2),
        "3": String("3"),
        "true": Number(5),
        "null": Number(6),
    })


@pytest.mark.parametrize("src, expected", [
    ("({'foo': 5})['foo']", Number(5)),
    ("({'foo': 5})['bar']", NULL),
    ("let key = 'foo'; ({'foo': 5})[key]", Number(5)),
    ("({})['foo']", NULL),
    ("({5: 5})[5]", Number(5)),
    ("({1 + 2: '3'})['3']", String("3")),
    ("({true: 5})[true]", Number(5)),
])
def test_hash_indexing(src, expected):
    assert_value(src, expected)


def test_later_duplicate_hash_keys_win():
    assert_value("let h = {'a': 1, 'a': 2}; h['a']", Number(2))


@pytest.mark.parametrize("src, expected", [
    ("'abc'[0]", String("a")),
    ("'abc'[2]", String("c")),
    ("'abc'[3]", NULL),
])
def test_string_indexing(src, expected):
    assert_value(src, expected)


def test_index_unsupported_receiver():
    assert eval_src("5[0]") == Error("index operator not supported: Number")
    assert eval_src("true['a']") == Error("index operator not supported: Boolean")

# Property access

def test_hash_property_access():
    assert_value("let obj = {'foo':'bar'}; obj.foo", String("bar"))
    assert_value("let obj = {'inner': {'x': 1}}; obj.inner.x", Number(1))


def test_missing_property_is_null():
    assert_value("let obj = {'foo': 1}; obj.bar", NULL)
    assert_value("let n = 5; n.nothing", NULL)
    assert_value("[1].nothing", NULL)
    assert_value("null.length", NULL)


def test_hash_keys_shadow_methods():
    assert_value("let h = {'length': 'custom'}; h.length", String("custom"))
    assert_value("let h = {'a': 1, 'b': 2}; h.length", Number(2))


def test_property_access_on_error_propagates():
    assert eval_src("missing.length") == Error("missing is not defined")

# Globals

def test_print_global_records_output():
    ev = Evaluator()
    result = ev.eval(parse("print('a', 1, [true]); print();"), Environment())
    assert result == NULL
    assert ev.side_effects == [
        {'topics': ['stdout'], 'message': 'a 1 [true]'},
        {'topics': ['stdout'], 'message': ''},
    ]


def test_globals_take_precedence_over_bindings():
    ev = Evaluator()
    env = Environment()
    ev.eval(parse("let print = 5; print('still printing');"), env)
    assert env.get("print") == Number(5)
    assert ev.side_effects == [{'topics': ['stdout'], 'message': 'still printing'}]


def test_print_is_a_builtin_value():
    result = eval_src("print")
    assert isinstance(result, Builtin)
    assert inspect(result) == "builtin print"

# Evaluator internals

def test_eval_unwraps_return():
    ev = Evaluator()
    block = parse("{ return 5; }").statements[0]
    assert isinstance(ev._eval(block, Environment()), Return)
    assert ev.eval(block, Environment()) == Number(5)
    assert unwrap_return(Return(Number(1))) == Number(1)
    assert unwrap_return(Number(1)) == Number(1)


def test_calls_run_in_a_fresh_closure_over_the_defining_scope():
    ev = Evaluator()
    env = Environment()
    ev.eval(parse("let f = fn(a) { a };"), env)
    fn = env.get("f")
    assert ev.apply_function(fn, [Number(7)]) == Number(7)
    assert env.get("a") is None
    assert ev.call_stack == []


def test_call_stack_is_balanced_after_calls():
    ev = Evaluator()
    ev.eval(parse("let f = fn(x) { x }; f(f(1));"), Environment())
    assert ev.call_stack == []


def test_apply_function_rejects_non_callables():
    assert Evaluator().apply_function(Number(1), []) == Error("not a function: Number")


def test_evaluator_rejects_unknown_nodes():
    with pytest.raises(TypeError):
        Evaluator().eval(object(), Environment())
