from acacia.exceptions import ErrorCode, ErrorReporter
from acacia.interpreter import Interpreter
from acacia.lexer import Lexer
from acacia.parser import Parser
from acacia.resolver import Resolver


def resolve(text):
    reporter = ErrorReporter()
    statements = Parser(Lexer(text, reporter).tokenize(), reporter).parse()
    assert not reporter.had_error, reporter.diagnostics
    interpreter = Interpreter()
    Resolver(interpreter, reporter).resolve(statements)
    return statements, interpreter, reporter


def error_codes(text):
    _, _, reporter = resolve(text)
    return [diagnostic.error_code for diagnostic in reporter.diagnostics]


def test_globals_are_not_recorded():
    _, interpreter, reporter = resolve('let a = 1; print a;')
    assert not reporter.had_error
    assert interpreter.locals == {}


def test_local_depths():
    statements, interpreter, _ = resolve('{ let a = 1; { print a; } }')
    inner_print = statements[0].body[1].body[0]
    assert interpreter.locals[inner_print.expression] == 1


def test_shadowing_resolves_to_inner_binding():
    statements, interpreter, reporter = resolve('{ let x = 1; { let x = 2; print x; } }')
    assert not reporter.had_error
    inner_print = statements[0].body[1].body[1]
    assert interpreter.locals[inner_print.expression] == 0


def test_redeclaration_in_same_block():
    assert error_codes('{ let x = 1; let x = 2; }') == [ErrorCode.VARIABLE_REDECLARED]
    _, _, reporter = resolve('{ let x = 1; let x = 2; }')
    assert reporter.diagnostics[0].message == "Variable 'x' already exists in this scope."


def test_self_referential_initializer():
    assert error_codes('{ let a = a; }') == [ErrorCode.SELF_REFERENCE]


def test_exit_and_next_outside_loop():
    assert error_codes('exit;') == [ErrorCode.UNSYNTACTIC_EXIT]
    assert error_codes('next;') == [ErrorCode.UNSYNTACTIC_NEXT]
    # a function body is not a loop, even inside one
    assert error_codes('while (true) { def f() { exit; } }') == [ErrorCode.UNSYNTACTIC_EXIT]
    assert error_codes('while (true) { if (true) { exit; } next; }') == []
    assert error_codes('foreach (let x; [1]) { exit; }') == []


def test_return_placement():
    assert error_codes('return 1;') == [ErrorCode.UNSYNTACTIC_RETURN]
    assert error_codes('def f() { while (true) { return 1; } }') == []
    assert error_codes('class A { init() { return; } }') == []
    assert error_codes('class A { init() { return 1; } }') == [ErrorCode.UNSYNTACTIC_RETURN]
    # the nearest function decides, not any initializer further out
    assert error_codes('class A { init() { def f() { return 1; } } }') == []


def test_this_and_super_misuse():
    assert error_codes('print this;') == [ErrorCode.UNSYNTACTIC_THIS]
    assert error_codes('def f() { return super.x; }') == [ErrorCode.UNSYNTACTIC_SUPER]
    assert error_codes('class A { f() { return super.f(); } }') == [ErrorCode.UNSYNTACTIC_SUPER]
    assert error_codes('class A {} class B < A { f() { return super.f(); } }') == []


def test_classes_only_at_top_level():
    assert error_codes('{ class A {} }') == [ErrorCode.NESTED_CLASS]
    assert error_codes('def f() { class A {} }') == [ErrorCode.NESTED_CLASS]


def test_self_inheritance():
    assert error_codes('class A < A {}') == [ErrorCode.SELF_INHERITANCE]


def test_resolution_keeps_going_after_an_error():
    assert error_codes('exit; return; print this;') == [
        ErrorCode.UNSYNTACTIC_EXIT, ErrorCode.UNSYNTACTIC_RETURN, ErrorCode.UNSYNTACTIC_THIS,
    ]


def test_method_scopes():
    statements, interpreter, _ = resolve('class A {} class B < A { get() { return super.get(); } }')
    returned = statements[1].methods[0].body[0]
    # params scope, then `this`, then `super`
    assert interpreter.locals[returned.value.callee] == 2
