import io

import pytest

from treelox.ast import Break, Print, Literal
from treelox.errors import ErrorReporter, LoxRuntimeError
from treelox.interpreter import Interpreter, LoxFunction, run_program
from treelox.parser import parse_program


def run_and_capture(source):
    out = io.StringIO()
    err = io.StringIO()
    interp = run_program(source, out=out, reporter=ErrorReporter(err))
    return out.getvalue(), err.getvalue(), interp


def test_output_stream_and_reporter_stream():
    out, err, interp = run_and_capture('print "x"; print -"y";')
    assert out == 'x\n'
    assert err == 'Operand must be a number.\n[line 1]\n'
    assert interp.reporter.had_runtime_error


@pytest.mark.parametrize('source, message', [
    ('print "a" + 1;', 'Operands must be two numbers or two strings.'),
    ('print 1 + nil;', 'Operands must be two numbers or two strings.'),
    ('print "a" < "b";', 'Operands must be numbers.'),
    ('print true * 2;', 'Operands must be numbers.'),
    ('print 0 / 0;', 'Division by zero.'),
    ('var s = "text"; s();', 'Can only call functions and classes.'),
    ('print clock(1);', 'Expected 0 arguments but got 1.'),
    ('missing = 1;', "Undefined variable 'missing'."),
])
def test_runtime_errors(source, message):
    out, err, _ = run_and_capture(source)
    assert out == ''
    assert err.split('\n')[0] == message


def test_runtime_error_stops_program():
    out, err, _ = run_and_capture('print 1;\nprint nope;\nprint 3;')
    assert out == '1\n'
    assert err == "Undefined variable 'nope'.\n[line 2]\n"


def test_run_raises_runtime_error():
    interp = Interpreter()
    statements = parse_program('print undefined;')
    with pytest.raises(LoxRuntimeError) as excinfo:
        interp.run(statements)
    assert excinfo.value.token.lexeme == 'undefined'


def test_signal_at_top_level_is_a_bug():
    with pytest.raises(AssertionError):
        Interpreter().run([Break()])


def test_globals_persist_between_runs():
    out = io.StringIO()
    interp = Interpreter(out=out)
    assert interp.interpret(parse_program('var a = 1; fun inc() { a = a + 1; }'))
    assert interp.interpret(parse_program('inc(); print a;'))
    assert out.getvalue() == '2\n'


def test_interpret_returns_false_on_runtime_error():
    interp = Interpreter(reporter=ErrorReporter(io.StringIO()))
    assert not interp.interpret(parse_program('print -nil;'))
    assert interp.reporter.had_runtime_error


def test_running_twice_gives_same_output():
    source = 'var x = 0; while (x < 3) { print x; x = x + 1; }'
    first, _, _ = run_and_capture(source)
    second, _, _ = run_and_capture(source)
    assert first == second == '0\n1\n2\n'


def test_no_output_when_source_has_syntax_errors():
    out, err, interp = run_and_capture('print 1;\nprint 2 +;')
    assert out == ''
    assert err == "[line 2] Error at ';': Expect expression.\n"
    assert interp.reporter.had_error
    assert not interp.reporter.had_runtime_error


def test_number_display():
    out, _, _ = run_and_capture('print 3; print 2.50; print -0.5; print 1000000;')
    assert out == '3\n2.5\n-0.5\n1000000\n'


def test_number_display_never_uses_exponents():
    out, _, _ = run_and_capture(
        'print 10000000000000000; print 1000000000000000000000; print 0.00001;'
    )
    assert out == '10000000000000000\n1000000000000000000000\n0.00001\n'


def test_number_display_overflow():
    source = '''
var x = 10;
for (var i = 0; i < 400; i = i + 1) x = x * 10;
print x;
print -x;
print x - x;
'''
    out, _, _ = run_and_capture(source)
    assert out == 'Infinity\n-Infinity\nNaN\n'


def test_truthiness():
    out, _, _ = run_and_capture(
        'print !nil; print !false; print !0; print !""; print 0 ? "t" .. "f";'
    )
    assert out == 'true\ntrue\nfalse\nfalse\nt\n'


def test_return_from_nested_loops():
    source = '''
fun find() {
  for (var i = 0; i < 5; i = i + 1) {
    for (var j = 0; j < 5; j = j + 1) {
      if (i * j == 6) return i * 10 + j;
    }
  }
  return -1;
}
print find();
'''
    out, _, _ = run_and_capture(source)
    assert out == '23\n'


def test_break_inside_block_inside_loop():
    source = 'var n = 0; while (true) { { n = n + 1; if (n > 2) { break; } } } print n;'
    out, _, _ = run_and_capture(source)
    assert out == '3\n'


def test_function_without_return_gives_nil():
    out, _, _ = run_and_capture('fun f() { 1; } print f();')
    assert out == 'nil\n'


def test_recursion_limit_is_a_runtime_error():
    out, err, interp = run_and_capture('fun f() { return f(); } f();')
    assert out == ''
    assert err.split('\n')[0] == 'Stack overflow.'
    assert interp.reporter.had_runtime_error


def test_deep_recursion():
    source = '''
fun depth(n) {
  if (n == 0) return 0;
  return 1 + depth(n - 1);
}
print depth(500);
'''
    out, err, _ = run_and_capture(source)
    assert err == ''
    assert out == '500\n'


def test_function_values():
    interp = Interpreter()
    interp.run(parse_program('fun twice(x) { return x * 2; }'))
    fn = interp.globals.values['twice']
    assert isinstance(fn, LoxFunction)
    assert fn.arity() == 1
    assert str(fn) == '<fn twice>'
    assert fn.call(interp, [4.0]) == 8.0


def test_debug_trace(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    out = io.StringIO()
    run_program('var a = 1 + 2; if (a > 1) print a;', debug_level=3, out=out)
    assert out.getvalue() == '3\n'
    trace = (tmp_path / 'debug.txt').read_text().split('\n')
    assert 'exec Var a' in trace
    assert 'declare a: number = 3' in trace
    assert 'exec If' in trace
    assert 'if condition true -> True' in trace


def test_debug_trace_level_one(tmp_path):
    debug_file = tmp_path / 'trace.txt'
    interp = Interpreter(debug_level=1, debug_file=str(debug_file), out=io.StringIO())
    interp.interpret([Print(Literal(1.0))])
    interp.close()
    assert debug_file.read_text() == 'exec Print 1\n'
