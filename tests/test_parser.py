from treelox.ast import (
    Assign, Binary, Block, Break, Call, Expression, Function, Grouping,
    Literal, Logical, Print, Return, Ternary, Var, Variable, While,
)
from treelox.ast_printer import AstPrinter, RpnPrinter
from treelox.errors import ErrorReporter
from treelox.parser import Parser, parse_program
from treelox.tokens import Token, TokenType


def parse_ok(source):
    reporter = ErrorReporter()
    statements = parse_program(source, reporter)
    assert not reporter.had_error
    return statements


def parse_expr(source):
    (stmt,) = parse_ok(source + ';')
    assert isinstance(stmt, Expression)
    return stmt.expression


def test_precedence():
    expr = parse_expr('1 + 2 * 3')
    assert AstPrinter().print(expr) == '(+ 1 (* 2 3))'
    assert RpnPrinter().print(expr) == '1 2 3 * +'


def test_grouping_and_unary():
    expr = parse_expr('-(1 + 2) * !true')
    assert AstPrinter().print(expr) == '(* (- (group (+ 1 2))) (! true))'
    assert RpnPrinter().print(expr) == '1 2 + - true ! *'


def test_binary_operators_are_left_associative():
    expr = parse_expr('1 - 2 - 3')
    assert AstPrinter().print(expr) == '(- (- 1 2) 3)'


def test_assignment_is_right_associative():
    expr = parse_expr('a = b = 3')
    assert isinstance(expr, Assign)
    assert expr.name.lexeme == 'a'
    assert isinstance(expr.value, Assign)
    assert expr.value.name.lexeme == 'b'
    assert expr.value.value == Literal(3.0)


def test_invalid_assignment_target(capsys):
    reporter = ErrorReporter()
    statements = parse_program('1 + a = 3;\nprint 2;', reporter)
    assert reporter.had_error
    assert capsys.readouterr().err.strip() == "[line 1] Error at '=': Invalid assignment target."
    # Parsing resumes with the next statement.
    assert len(statements) == 1
    assert isinstance(statements[0], Print)


def test_comma_binds_loosest():
    expr = parse_expr('a = 1, b = 2, 3')
    assert AstPrinter().print(expr) == '(, (, (= a 1) (= b 2)) 3)'


def test_call_arguments_are_not_comma_expressions():
    expr = parse_expr('f(1, 2)(3)')
    assert isinstance(expr, Call)
    assert [a.value for a in expr.arguments] == [3.0]
    assert isinstance(expr.callee, Call)
    assert [a.value for a in expr.callee.arguments] == [1.0, 2.0]
    assert AstPrinter().print(expr) == '(call (call f 1 2) 3)'


def test_ternary():
    expr = parse_expr('a == 1 ? "one" .. b or c')
    # The ternary binds tighter than `or`.
    assert isinstance(expr, Logical)
    ternary = expr.left
    assert isinstance(ternary, Ternary)
    assert AstPrinter().print(ternary) == '(?.. (== a 1) "one" b)'


def test_ternary_missing_double_dot(capsys):
    reporter = ErrorReporter()
    parse_program('print a ? 1 2;', reporter)
    assert capsys.readouterr().err.strip() == "[line 1] Error at '2': Missing '..' in ternary operator."


def test_logical_operators():
    expr = parse_expr('a or b and c')
    assert isinstance(expr, Logical)
    assert expr.operator.type == TokenType.OR
    assert isinstance(expr.right, Logical)
    assert expr.right.operator.type == TokenType.AND


def test_var_declarations():
    a, b = parse_ok('var a; var b = "x";')
    assert a == Var(a.name, None)
    assert isinstance(b.initializer, Literal)
    assert b.initializer.value == 'x'


def test_for_loop_desugars_into_while():
    (stmt,) = parse_ok('for (var i = 0; i < 3; i = i + 1) print i;')
    assert isinstance(stmt, Block)
    init, loop = stmt.statements
    assert isinstance(init, Var)
    assert isinstance(loop, While)
    assert AstPrinter().print(loop.condition) == '(< i 3)'
    assert isinstance(loop.body, Block)
    body, increment = loop.body.statements
    assert isinstance(body, Print)
    assert AstPrinter().print(increment.expression) == '(= i (+ i 1))'


def test_empty_for_clauses():
    (stmt,) = parse_ok('for (;;) break;')
    assert stmt == While(Literal(True), Break())


def test_for_variable_requires_initializer(capsys):
    reporter = ErrorReporter()
    parse_program('for (var i; i < 3;) print i;', reporter)
    assert reporter.had_error
    err = capsys.readouterr().err
    assert "[line 1] Error at ';': Expect '=' in for-loop variable declaration." in err


def test_break_inside_nested_loops():
    (stmt,) = parse_ok('while (true) { while (false) break; break; }')
    inner, outer_break = stmt.body.statements
    assert inner.body == Break()
    assert outer_break == Break()


def test_break_outside_loop(capsys):
    reporter = ErrorReporter()
    statements = parse_program('if (true) break;\nprint 1;', reporter)
    assert reporter.had_error
    assert capsys.readouterr().err.strip() == (
        "[line 1] Error at 'break': Break statement must be inside a loop."
    )
    assert len(statements) == 1


def test_break_inside_function_inside_loop(capsys):
    reporter = ErrorReporter()
    parse_program('while (true) {\n  fun f() { break; }\n  break;\n}', reporter)
    assert capsys.readouterr().err.strip() == (
        "[line 2] Error at 'break': Break statement must be inside a loop."
    )


def test_function_declaration():
    (fn,) = parse_ok('fun add(a, b) { return a + b; }')
    assert isinstance(fn, Function)
    assert fn.name.lexeme == 'add'
    assert [p.lexeme for p in fn.params] == ['a', 'b']
    (ret,) = fn.body
    assert isinstance(ret, Return)
    assert AstPrinter().print(ret.value) == '(+ a b)'


def test_bare_return():
    (fn,) = parse_ok('fun f() { return; }')
    assert fn.body[0].value is None


def test_return_at_top_level(capsys):
    reporter = ErrorReporter()
    parse_program('return 1;', reporter)
    assert capsys.readouterr().err.strip() == "[line 1] Error at 'return': Can't return from top-level code."


def test_binary_operator_without_left_operand(capsys):
    reporter = ErrorReporter()
    statements = parse_program('* 3 + 4;\nprint 5;', reporter)
    assert reporter.had_error
    assert capsys.readouterr().err.strip() == "[line 1] Error at '*': Binary operator cannot start an expression."
    assert len(statements) == 1
    assert isinstance(statements[0], Print)


def test_reports_every_independent_error(capsys):
    reporter = ErrorReporter()
    parse_program('var = 1;\nprint ;\nprint (1;', reporter)
    err_lines = capsys.readouterr().err.strip().split('\n')
    assert err_lines == [
        "[line 1] Error at '=': Expect variable name.",
        "[line 2] Error at ';': Expect expression.",
        "[line 3] Error at ';': Expect ')' after expression.",
    ]


def test_error_at_end(capsys):
    reporter = ErrorReporter()
    parse_program('print 1', reporter)
    assert capsys.readouterr().err.strip() == "[line 1] Error at end: Expect ';' after value."


def test_too_many_arguments(capsys):
    args = ', '.join(['1'] * 256)
    reporter = ErrorReporter()
    statements = parse_program(f'f({args});', reporter)
    assert reporter.had_error
    assert "Can't have more than 255 arguments." in capsys.readouterr().err
    # The call itself is still built.
    assert len(statements[0].expression.arguments) == 256


def test_parser_appends_missing_eof():
    tokens = [
        Token(TokenType.PRINT, 'print', None, 1),
        Token(TokenType.NUMBER, '1', 1.0, 1),
        Token(TokenType.SEMICOLON, ';', None, 1),
    ]
    (stmt,) = Parser(tokens).parse()
    assert stmt == Print(Literal(1.0))


def test_nested_grouping():
    expr = parse_expr('((1))')
    assert expr == Grouping(Grouping(Literal(1.0)))


def test_variable_expression():
    expr = parse_expr('x')
    assert isinstance(expr, Variable)
    assert isinstance(parse_expr('x > 1'), Binary)


def test_reserved_words_cannot_be_names(capsys):
    reporter = ErrorReporter()
    parse_program('var this = 1;\nfun super() {}\nfun f(class) {}', reporter)
    assert capsys.readouterr().err.strip().split('\n') == [
        "[line 1] Error at 'this': Expect variable name.",
        "[line 2] Error at 'super': Expect function name.",
        "[line 3] Error at 'class': Expect parameter name.",
    ]
