import logging
from collections import deque
from dataclasses import dataclass, fields
from typing import Any, List, Optional, Tuple

from .exceptions import ParserError, ErrorCode, ErrorReporter
from .lexer import Token, TokenType

logger = logging.getLogger(__name__)

# tokens that can open a new declaration or statement, used by panic-mode recovery
statement_start_token_types = (
    TokenType.CLASS,
    TokenType.DEF,
    TokenType.LET,
    TokenType.FOR,
    TokenType.IF,
    TokenType.WHILE,
    TokenType.PRINT,
    TokenType.RETURN,
)

increment_token_types = (
    TokenType.INCREMENT,
    TokenType.DECREMENT,
    TokenType.DOUBLE,
    TokenType.HALVE,
)


# Nodes compare and hash by identity so that the resolver can key its table on them.
@dataclass(frozen=True, eq=False)
class ASTNode:
    pass


@dataclass(frozen=True, eq=False)
class Expression(ASTNode):
    pass


@dataclass(frozen=True, eq=False)
class Statement(ASTNode):
    pass


@dataclass(frozen=True, eq=False)
class Literal(Expression):
    value: Any


@dataclass(frozen=True, eq=False)
class Identifier(Expression):
    name: Token


@dataclass(frozen=True, eq=False)
class ThisExpression(Expression):
    keyword: Token


@dataclass(frozen=True, eq=False)
class SuperExpression(Expression):
    keyword: Token
    method: Token


@dataclass(frozen=True, eq=False)
class GroupingExpression(Expression):
    expression: Expression


@dataclass(frozen=True, eq=False)
class UnaryExpression(Expression):
    operator: Token
    right: Expression


@dataclass(frozen=True, eq=False)
class BinaryExpression(Expression):
    left: Expression
    operator: Token
    right: Expression


@dataclass(frozen=True, eq=False)
class LogicalExpression(Expression):
    left: Expression
    operator: Token
    right: Expression


@dataclass(frozen=True, eq=False)
class AssignmentExpression(Expression):
    name: Token
    value: Expression


@dataclass(frozen=True, eq=False)
class IncrementExpression(Expression):
    # target is an Identifier or an IndexExpression
    target: Expression
    operator: Token


@dataclass(frozen=True, eq=False)
class CallExpression(Expression):
    callee: Expression
    paren: Token
    arguments: Tuple[Expression, ...]


@dataclass(frozen=True, eq=False)
class GetExpression(Expression):
    object: Expression
    name: Token


@dataclass(frozen=True, eq=False)
class PutExpression(Expression):
    object: Expression
    name: Token
    value: Expression


@dataclass(frozen=True, eq=False)
class IndexExpression(Expression):
    container: Expression
    bracket: Token
    index: Expression


@dataclass(frozen=True, eq=False)
class IndexAssignmentExpression(Expression):
    container: Expression
    bracket: Token
    index: Expression
    value: Expression


@dataclass(frozen=True, eq=False)
class SetExpression(Expression):
    bracket: Token
    values: Tuple[Expression, ...]


@dataclass(frozen=True, eq=False)
class ExpressionStatement(Statement):
    expression: Expression


@dataclass(frozen=True, eq=False)
class PrintStatement(Statement):
    expression: Expression


@dataclass(frozen=True, eq=False)
class LetStatement(Statement):
    name: Token
    initializer: Optional[Expression]


@dataclass(frozen=True, eq=False)
class BlockStatement(Statement):
    body: Tuple[Statement, ...]


@dataclass(frozen=True, eq=False)
class IfStatement(Statement):
    test: Expression
    consequent: Statement
    alternate: Optional[Statement]


@dataclass(frozen=True, eq=False)
class WhileStatement(Statement):
    test: Expression
    body: Statement
    increment: Optional[Expression] = None


@dataclass(frozen=True, eq=False)
class ForeachStatement(Statement):
    iterator: Token
    iterable: Expression
    iterable_token: Token
    index: Optional[Token]
    body: Statement


@dataclass(frozen=True, eq=False)
class FunctionStatement(Statement):
    name: Token
    params: Tuple[Token, ...]
    body: Tuple[Statement, ...]


@dataclass(frozen=True, eq=False)
class ClassStatement(Statement):
    name: Token
    superclass: Optional[Identifier]
    methods: Tuple[FunctionStatement, ...]


@dataclass(frozen=True, eq=False)
class ReturnStatement(Statement):
    keyword: Token
    value: Optional[Expression]


@dataclass(frozen=True, eq=False)
class ExitStatement(Statement):
    keyword: Token


@dataclass(frozen=True, eq=False)
class NextStatement(Statement):
    keyword: Token


def first_token(node: ASTNode) -> Optional[Token]:
    """Shallowest token of a tree, found without recursion."""
    queue = deque([node])
    while queue:
        current = queue.popleft()
        for field in fields(current):
            value = getattr(current, field.name)
            if isinstance(value, Token):
                return value
            if isinstance(value, ASTNode):
                queue.append(value)
            elif isinstance(value, tuple):
                queue.extend(item for item in value if isinstance(item, ASTNode))
    return None


class Parser:
    def __init__(self, tokens: List[Token], reporter: Optional[ErrorReporter] = None):
        self.tokens: List[Token] = tokens
        self.reporter: ErrorReporter = reporter if reporter is not None else ErrorReporter()
        self.current: int = 0

    def parse(self) -> List[Statement]:
        statements = list()
        while not self.is_at_end():
            try:
                statement = self.parse_declaration()
            except RecursionError:
                self.error(self.peek(), 'Too much nesting.', ErrorCode.NESTING_TOO_DEEP)
                break
            if statement is not None:
                statements.append(statement)
        logger.debug('parsed %d top-level statements', len(statements))
        return statements

    # token traversal

    def peek(self) -> Token:
        return self.tokens[self.current]

    def previous(self) -> Token:
        return self.tokens[self.current - 1]

    def is_at_end(self) -> bool:
        return self.peek().type == TokenType.EOF

    def check(self, token_type: TokenType) -> bool:
        if self.is_at_end():
            return False
        return self.peek().type == token_type

    def advance_token(self) -> Token:
        if not self.is_at_end():
            self.current += 1
        return self.previous()

    def match(self, *token_types: TokenType) -> bool:
        for token_type in token_types:
            if self.check(token_type):
                self.advance_token()
                return True
        return False

    def consume(self, token_type: TokenType, message: str) -> Token:
        if self.check(token_type):
            return self.advance_token()
        raise self.error(self.peek(), message)

    def error(self, token: Token, message: str,
              error_code: ErrorCode = ErrorCode.UNEXPECTED_TOKEN) -> ParserError:
        self.reporter.error(token, message, error_code=error_code)
        return ParserError(error_code, message)

    def synchronize(self):
        self.advance_token()
        while not self.is_at_end():
            if self.previous().type == TokenType.SEMI:
                return
            if self.peek().type in statement_start_token_types:
                return
            self.advance_token()

    # declarations and statements

    def parse_declaration(self) -> Optional[Statement]:
        try:
            if self.match(TokenType.CLASS):
                return self.parse_class_declaration()
            if self.match(TokenType.DEF):
                return self.parse_function('function')
            if self.match(TokenType.LET):
                return self.parse_let_declaration()
            return self.parse_statement()
        except ParserError:
            self.synchronize()
            return None

    def parse_class_declaration(self) -> ClassStatement:
        name = self.consume(TokenType.ID, 'Expected class name.')

        superclass = None
        if self.match(TokenType.LESS):
            self.consume(TokenType.ID, 'Expected superclass name.')
            superclass = Identifier(self.previous())

        self.consume(TokenType.LBRACE, "Expected '{' before class body.")
        methods = list()
        while not self.check(TokenType.RBRACE) and not self.is_at_end():
            self.match(TokenType.DEF)
            methods.append(self.parse_function('method'))
        self.consume(TokenType.RBRACE, "Expected '}' after class body.")
        return ClassStatement(name, superclass, tuple(methods))

    def parse_function(self, kind: str) -> FunctionStatement:
        name = self.consume(TokenType.ID, f'Expected {kind} name.')
        self.consume(TokenType.LPAREN, f"Expected '(' after {kind} name.")
        params = list()
        if not self.check(TokenType.RPAREN):
            params.append(self.consume(TokenType.ID, 'Expected parameter name.'))
            while self.match(TokenType.COMMA):
                params.append(self.consume(TokenType.ID, 'Expected parameter name.'))
        self.consume(TokenType.RPAREN, "Expected ')' after parameters.")
        self.consume(TokenType.LBRACE, f"Expected '{{' before {kind} body.")
        return FunctionStatement(name, tuple(params), tuple(self.parse_block()))

    def parse_let_declaration(self) -> LetStatement:
        name = self.consume(TokenType.ID, 'Expected variable name.')
        initializer = None
        if self.match(TokenType.ASSIGN):
            initializer = self.parse_expression()
        self.consume(TokenType.SEMI, "Expected ';' after variable declaration.")
        return LetStatement(name, initializer)

    def parse_statement(self) -> Statement:
        if self.match(TokenType.EXIT):
            keyword = self.previous()
            self.consume(TokenType.SEMI, "Expected ';' after statement.")
            return ExitStatement(keyword)
        if self.match(TokenType.NEXT):
            keyword = self.previous()
            self.consume(TokenType.SEMI, "Expected ';' after statement.")
            return NextStatement(keyword)
        if self.match(TokenType.FOR):
            return self.parse_for_statement()
        if self.match(TokenType.FOREACH):
            return self.parse_foreach_statement()
        if self.match(TokenType.IF):
            return self.parse_if_statement()
        if self.match(TokenType.PRINT):
            value = self.parse_expression()
            self.consume(TokenType.SEMI, "Expected ';' after value.")
            return PrintStatement(value)
        if self.match(TokenType.RETURN):
            return self.parse_return_statement()
        if self.match(TokenType.WHILE):
            return self.parse_while_statement()
        if self.match(TokenType.LBRACE):
            return BlockStatement(tuple(self.parse_block()))
        return self.parse_expression_statement()

    def parse_for_statement(self) -> Statement:
        self.consume(TokenType.LPAREN, "Expected '(' after 'for'.")

        if self.match(TokenType.SEMI):
            initializer = None
        elif self.match(TokenType.LET):
            initializer = self.parse_let_declaration()
        else:
            initializer = self.parse_expression_statement()

        test = None
        if not self.check(TokenType.SEMI):
            test = self.parse_expression()
        self.consume(TokenType.SEMI, "Expected ';' after loop condition.")

        increment = None
        if not self.check(TokenType.RPAREN):
            increment = self.parse_expression()
        self.consume(TokenType.RPAREN, "Expected ')' after for clauses.")
        body = self.parse_statement()

        # for (init; test; increment) body  ==>  { init; while (test) body [increment] }
        if test is None:
            test = Literal(True)
        loop = WhileStatement(test, body, increment)
        if initializer is not None:
            return BlockStatement((initializer, loop))
        return loop

    def parse_foreach_statement(self) -> ForeachStatement:
        self.consume(TokenType.LPAREN, "Expected '(' after 'foreach'.")
        self.consume(TokenType.LET, "Expected variable initializer (for iterator).")
        iterator = self.consume(TokenType.ID, 'Expected iterator name.')
        self.consume(TokenType.SEMI, "Expected ';' after variable initializer.")

        iterable_token = self.peek()
        iterable = self.parse_expression()
        self.consume(TokenType.SEMI, "Expected ';' after iterable.")

        index = None
        if not self.check(TokenType.RPAREN):
            self.consume(TokenType.LET, "Expected variable initializer (for index).")
            index = self.consume(TokenType.ID, 'Expected index name.')
        self.consume(TokenType.RPAREN, "Expected ')' after foreach clauses.")
        body = self.parse_statement()
        return ForeachStatement(iterator, iterable, iterable_token, index, body)

    def parse_if_statement(self) -> IfStatement:
        self.consume(TokenType.LPAREN, "Expected '(' after 'if'.")
        test = self.parse_expression()
        self.consume(TokenType.RPAREN, "Expected ')' after if condition.")
        consequent = self.parse_statement()
        alternate = None
        if self.match(TokenType.ELSE):
            alternate = self.parse_statement()
        return IfStatement(test, consequent, alternate)

    def parse_return_statement(self) -> ReturnStatement:
        keyword = self.previous()
        value = None
        if not self.check(TokenType.SEMI):
            value = self.parse_expression()
        self.consume(TokenType.SEMI, "Expected ';' after return value.")
        return ReturnStatement(keyword, value)

    def parse_while_statement(self) -> WhileStatement:
        self.consume(TokenType.LPAREN, "Expected '(' after 'while'.")
        test = self.parse_expression()
        self.consume(TokenType.RPAREN, "Expected ')' after condition.")
        return WhileStatement(test, self.parse_statement())

    def parse_expression_statement(self) -> ExpressionStatement:
        expression = self.parse_expression()
        self.consume(TokenType.SEMI, "Expected ';' after expression.")
        return ExpressionStatement(expression)

    def parse_block(self) -> List[Statement]:
        statements = list()
        while not self.check(TokenType.RBRACE) and not self.is_at_end():
            statement = self.parse_declaration()
            if statement is not None:
                statements.append(statement)
        self.consume(TokenType.RBRACE, "Expected '}' at end of block.")
        return statements

    # expressions, lowest precedence first

    def parse_expression(self) -> Expression:
        return self.parse_increment()

    def parse_increment(self) -> Expression:
        expression = self.parse_assignment()
        if self.match(*increment_token_types):
            operator = self.previous()
            if isinstance(expression, (Identifier, IndexExpression)):
                return IncrementExpression(expression, operator)
            # reported without unwinding, the statement is still usable
            self.error(operator, 'Invalid increment target.', ErrorCode.INVALID_INCREMENT_TARGET)
        return expression

    def parse_assignment(self) -> Expression:
        expression = self.parse_or()
        if self.match(TokenType.ASSIGN):
            equals = self.previous()
            value = self.parse_expression()
            if isinstance(expression, Identifier):
                return AssignmentExpression(expression.name, value)
            if isinstance(expression, GetExpression):
                return PutExpression(expression.object, expression.name, value)
            if isinstance(expression, IndexExpression):
                return IndexAssignmentExpression(expression.container, expression.bracket,
                                                 expression.index, value)
            self.error(equals, 'Invalid assignment target.', ErrorCode.INVALID_ASSIGNMENT_TARGET)
        return expression

    def parse_or(self) -> Expression:
        expression = self.parse_and()
        while self.match(TokenType.OR):
            operator = self.previous()
            expression = LogicalExpression(expression, operator, self.parse_and())
        return expression

    def parse_and(self) -> Expression:
        expression = self.parse_equality()
        while self.match(TokenType.AND):
            operator = self.previous()
            expression = LogicalExpression(expression, operator, self.parse_equality())
        return expression

    def parse_equality(self) -> Expression:
        expression = self.parse_comparison()
        while self.match(TokenType.NOT_EQUAL, TokenType.EQUAL):
            operator = self.previous()
            expression = BinaryExpression(expression, operator, self.parse_comparison())
        return expression

    def parse_comparison(self) -> Expression:
        expression = self.parse_term()
        while self.match(TokenType.GREATER, TokenType.GREATER_EQUAL, TokenType.LESS, TokenType.LESS_EQUAL):
            operator = self.previous()
            expression = BinaryExpression(expression, operator, self.parse_term())
        return expression

    def parse_term(self) -> Expression:
        expression = self.parse_factor()
        while self.match(TokenType.SUB, TokenType.ADD):
            operator = self.previous()
            expression = BinaryExpression(expression, operator, self.parse_factor())
        return expression

    def parse_factor(self) -> Expression:
        expression = self.parse_unary()
        while self.match(TokenType.DIV, TokenType.MUL, TokenType.MOD):
            operator = self.previous()
            expression = BinaryExpression(expression, operator, self.parse_unary())
        return expression

    def parse_unary(self) -> Expression:
        if self.match(TokenType.NOT, TokenType.SUB):
            operator = self.previous()
            return UnaryExpression(operator, self.parse_unary())
        return self.parse_call()

    def parse_call(self) -> Expression:
        expression = self.parse_primary()
        while True:
            if self.match(TokenType.LPAREN):
                expression = self.finish_call(expression)
            elif self.match(TokenType.POINT):
                name = self.consume(TokenType.ID, "Expected property name after '.'.")
                expression = GetExpression(expression, name)
            elif self.match(TokenType.LBRACKET):
                index = self.parse_expression()
                bracket = self.consume(TokenType.RBRACKET, "Expected ']' after index.")
                expression = IndexExpression(expression, bracket, index)
            else:
                break
        return expression

    def finish_call(self, callee: Expression) -> CallExpression:
        arguments = list()
        if not self.check(TokenType.RPAREN):
            arguments.append(self.parse_expression())
            while self.match(TokenType.COMMA):
                arguments.append(self.parse_expression())
        paren = self.consume(TokenType.RPAREN, "Expected ')' after arguments.")
        return CallExpression(callee, paren, tuple(arguments))

    def parse_primary(self) -> Expression:
        if self.match(TokenType.FALSE):
            return Literal(False)
        if self.match(TokenType.TRUE):
            return Literal(True)
        if self.match(TokenType.NIL):
            return Literal(None)
        if self.match(TokenType.NUMBER, TokenType.STRING):
            return Literal(self.previous().literal)
        if self.match(TokenType.THIS):
            return ThisExpression(self.previous())
        if self.match(TokenType.SUPER):
            keyword = self.previous()
            self.consume(TokenType.POINT, "Expected '.' after 'super'.")
            method = self.consume(TokenType.ID, 'Expected superclass method name.')
            return SuperExpression(keyword, method)
        if self.match(TokenType.ID):
            return Identifier(self.previous())
        if self.match(TokenType.LPAREN):
            expression = self.parse_expression()
            self.consume(TokenType.RPAREN, "Expected ')' after expression.")
            return GroupingExpression(expression)
        if self.match(TokenType.LBRACKET):
            return self.parse_set()
        raise self.error(self.peek(), 'Expected expression.')

    def parse_set(self) -> SetExpression:
        bracket = self.previous()
        values = list()
        if not self.check(TokenType.RBRACKET):
            values.append(self.parse_expression())
            while self.match(TokenType.COMMA):
                if self.check(TokenType.COMMA) or self.check(TokenType.RBRACKET):
                    raise self.error(self.peek(), "Expected value after ',' in set.")
                values.append(self.parse_expression())
        self.consume(TokenType.RBRACKET, "Expected ']' at end of set.")
        return SetExpression(bracket, tuple(values))
