from acacia.exceptions import ErrorCode, ErrorReporter
from acacia.lexer import Lexer
from acacia.parser import (
    Parser, Literal, Identifier, BinaryExpression, LogicalExpression, UnaryExpression, AssignmentExpression,
    IncrementExpression, CallExpression, GetExpression, PutExpression, IndexExpression, IndexAssignmentExpression,
    SetExpression, SuperExpression, ExpressionStatement, PrintStatement, LetStatement, BlockStatement,
    WhileStatement, ForeachStatement, FunctionStatement, ClassStatement, ReturnStatement,
)


def parse(text):
    reporter = ErrorReporter()
    statements = Parser(Lexer(text, reporter).tokenize(), reporter).parse()
    return statements, reporter


def parse_expression(text):
    statements, reporter = parse(text + ';')
    assert not reporter.had_error, reporter.diagnostics
    return statements[0].expression


def test_precedence_ladder():
    expression = parse_expression('1 + 2 * 3 == 7 and !false or nil')
    assert isinstance(expression, LogicalExpression)
    assert expression.operator.lexeme == 'or'
    conjunction = expression.left
    assert conjunction.operator.lexeme == 'and'
    equality = conjunction.left
    assert equality.operator.lexeme == '=='
    addition = equality.left
    assert addition.operator.lexeme == '+'
    assert isinstance(addition.right, BinaryExpression)
    assert addition.right.operator.lexeme == '*'
    assert isinstance(conjunction.right, UnaryExpression)


def test_binary_operators_are_left_associative():
    expression = parse_expression('10 - 4 - 3')
    assert isinstance(expression.left, BinaryExpression)
    assert expression.right.value == 3.0


def test_modulo_binds_like_multiplication():
    expression = parse_expression('1 + 7 % 4')
    assert expression.operator.lexeme == '+'
    assert expression.right.operator.lexeme == '%'


def test_assignment_targets():
    assert isinstance(parse_expression('a = 1'), AssignmentExpression)
    assert isinstance(parse_expression('a.b = 1'), PutExpression)
    assert isinstance(parse_expression('a[0] = 1'), IndexAssignmentExpression)
    nested = parse_expression('a = b = 2')
    assert isinstance(nested.value, AssignmentExpression)


def test_invalid_assignment_target_is_reported_without_aborting():
    statements, reporter = parse('1 + 2 = 3; print 4;')
    assert reporter.diagnostics[0].error_code == ErrorCode.INVALID_ASSIGNMENT_TARGET
    assert str(reporter.diagnostics[0]) == "[line 1] Error at '=': Invalid assignment target."
    assert isinstance(statements[1], PrintStatement)


def test_increment_nodes():
    for operator in ('++', '--', '+++', '---'):
        expression = parse_expression('x' + operator)
        assert isinstance(expression, IncrementExpression)
        assert expression.operator.lexeme == operator
        assert isinstance(expression.target, Identifier)
    indexed = parse_expression('a[1][2]++')
    assert isinstance(indexed.target, IndexExpression)
    assert isinstance(indexed.target.container, IndexExpression)


def test_invalid_increment_target():
    _, reporter = parse('f()++;')
    assert reporter.diagnostics[0].error_code == ErrorCode.INVALID_INCREMENT_TARGET


def test_postfix_chains():
    expression = parse_expression('a.b[0](1).c')
    assert isinstance(expression, GetExpression)
    call = expression.object
    assert isinstance(call, CallExpression)
    assert call.arguments[0].value == 1.0
    assert isinstance(call.callee, IndexExpression)
    assert isinstance(call.callee.container, GetExpression)


def test_set_literal():
    expression = parse_expression('[1, "two", [3]]')
    assert isinstance(expression, SetExpression)
    assert isinstance(expression.values[2], SetExpression)
    assert parse_expression('[]').values == ()


def test_set_literal_rejects_double_and_trailing_commas():
    for source in ('[1,,2];', '[1, 2,];'):
        _, reporter = parse(source)
        assert reporter.had_error
        assert reporter.diagnostics[0].message == "Expected value after ',' in set."


def test_for_desugars_into_while():
    statements, reporter = parse('for (let i = 0; i < 3; i++) print i;')
    assert not reporter.had_error
    block = statements[0]
    assert isinstance(block, BlockStatement)
    assert isinstance(block.body[0], LetStatement)
    loop = block.body[1]
    assert isinstance(loop, WhileStatement)
    assert isinstance(loop.increment, IncrementExpression)
    assert isinstance(loop.body, PrintStatement)


def test_for_without_clauses():
    statements, _ = parse('for (;;) exit;')
    loop = statements[0]
    assert isinstance(loop, WhileStatement)
    assert isinstance(loop.test, Literal) and loop.test.value is True
    assert loop.increment is None


def test_foreach():
    statements, reporter = parse('foreach (let item; items; let i) print item;')
    assert not reporter.had_error
    loop = statements[0]
    assert isinstance(loop, ForeachStatement)
    assert loop.iterator.lexeme == 'item'
    assert loop.index.lexeme == 'i'
    assert loop.iterable_token.lexeme == 'items'
    statements, _ = parse('foreach (let c; "abc") print c;')
    assert statements[0].index is None


def test_class_declaration():
    statements, reporter = parse('class B < A { init(n) { this.n = n; } def get() { return super.get(); } }')
    assert not reporter.had_error
    klass = statements[0]
    assert isinstance(klass, ClassStatement)
    assert klass.superclass.name.lexeme == 'A'
    assert [method.name.lexeme for method in klass.methods] == ['init', 'get']
    assert all(isinstance(method, FunctionStatement) for method in klass.methods)
    returned = klass.methods[1].body[0]
    assert isinstance(returned, ReturnStatement)
    assert isinstance(returned.value.callee, SuperExpression)


def test_function_declaration():
    statements, _ = parse('def add(a, b) { return a + b; }')
    function = statements[0]
    assert [param.lexeme for param in function.params] == ['a', 'b']
    assert isinstance(function.body[0], ReturnStatement)


def test_panic_mode_reports_independent_errors():
    statements, reporter = parse('let = 1;\nlet ok = 2;\nprint (;\nprint ok;')
    assert [d.line for d in reporter.diagnostics] == [1, 3]
    assert str(reporter.diagnostics[0]) == "[line 1] Error at '=': Expected variable name."
    assert [type(statement) for statement in statements] == [LetStatement, PrintStatement]


def test_error_at_end():
    _, reporter = parse('print 1')
    assert str(reporter.diagnostics[0]) == "[line 1] Error at end: Expected ';' after value."


def test_expression_statement():
    statements, _ = parse('f(1, 2);')
    assert isinstance(statements[0], ExpressionStatement)
    assert len(statements[0].expression.arguments) == 2


def test_excessive_nesting_is_reported():
    statements, reporter = parse('print ' + '(' * 5000 + '1' + ')' * 5000 + ';')
    assert statements == []
    assert reporter.diagnostics[-1].error_code == ErrorCode.NESTING_TOO_DEEP
    assert reporter.diagnostics[-1].message == 'Too much nesting.'
