import logging
from enum import Enum
from typing import Dict, List, Optional, TYPE_CHECKING

from .exceptions import ErrorCode, ErrorReporter
from .lexer import Token
from .parser import (
    ASTNode, Expression, Statement, Literal, Identifier, ThisExpression, SuperExpression, GroupingExpression,
    UnaryExpression, BinaryExpression, LogicalExpression, AssignmentExpression, IncrementExpression,
    CallExpression, GetExpression, PutExpression, IndexExpression, IndexAssignmentExpression, SetExpression,
    ExpressionStatement, PrintStatement, LetStatement, BlockStatement, IfStatement, WhileStatement,
    ForeachStatement, FunctionStatement, ClassStatement, ReturnStatement, ExitStatement, NextStatement,
    first_token,
)

if TYPE_CHECKING:
    from .interpreter import Interpreter

logger = logging.getLogger(__name__)


class BlockType(Enum):
    NONE = 0
    LOOP = 1
    FUNCTION = 2
    METHOD = 3
    INITIALIZER = 4


function_block_types = (BlockType.FUNCTION, BlockType.METHOD, BlockType.INITIALIZER)


class ClassType(Enum):
    NONE = 0
    CLASS = 1
    SUBCLASS = 2


class Resolver:
    """
    Walks the tree once, recording for every local variable reference how many scopes
    separate it from its declaration. References with no entry are globals.
    """

    def __init__(self, interpreter: 'Interpreter', reporter: Optional[ErrorReporter] = None):
        self.interpreter: 'Interpreter' = interpreter
        self.reporter: ErrorReporter = reporter if reporter is not None else ErrorReporter()
        # name -> defined yet?
        self.scopes: List[Dict[str, bool]] = list()
        self.blocks: List[BlockType] = [BlockType.NONE]
        self.current_class: ClassType = ClassType.NONE
        self.resolved_count: int = 0

    def resolve(self, statements):
        for statement in statements:
            scope_depth, block_depth, current_class = len(self.scopes), len(self.blocks), self.current_class
            try:
                self.resolve_node(statement)
            except RecursionError:
                token = first_token(statement)
                if token is None:
                    raise
                self.error(token, 'Too much nesting.', ErrorCode.NESTING_TOO_DEEP)
                del self.scopes[scope_depth:]
                del self.blocks[block_depth:]
                self.current_class = current_class
        logger.debug('resolved %d local references', self.resolved_count)

    def error(self, token: Token, message: str, error_code: ErrorCode):
        self.reporter.error(token, message, error_code=error_code)

    # scope bookkeeping

    def begin_scope(self):
        self.scopes.append(dict())

    def end_scope(self):
        self.scopes.pop()

    def declare(self, name: Token):
        if not self.scopes:
            return
        scope = self.scopes[-1]
        if name.lexeme in scope:
            self.error(name, f"Variable '{name.lexeme}' already exists in this scope.",
                       ErrorCode.VARIABLE_REDECLARED)
        scope[name.lexeme] = False

    def define(self, name: Token):
        if not self.scopes:
            return
        self.scopes[-1][name.lexeme] = True

    def resolve_local(self, expression: Expression, name: Token):
        for depth, scope in enumerate(reversed(self.scopes)):
            if name.lexeme in scope:
                self.interpreter.resolve(expression, depth)
                self.resolved_count += 1
                return

    def resolve_function(self, function: FunctionStatement, block_type: BlockType):
        self.blocks.append(block_type)
        self.begin_scope()
        for param in function.params:
            self.declare(param)
            self.define(param)
        for statement in function.body:
            self.resolve_node(statement)
        self.end_scope()
        self.blocks.pop()

    def nearest_function_block(self) -> BlockType:
        for block_type in reversed(self.blocks):
            if block_type in function_block_types:
                return block_type
        return BlockType.NONE

    # node dispatch

    def resolve_node(self, node: Optional[ASTNode]):
        if node is None:
            return
        if isinstance(node, Statement):
            self.resolve_statement(node)
        else:
            self.resolve_expression(node)

    def resolve_statement(self, node: Statement):
        if isinstance(node, ExpressionStatement):
            self.resolve_node(node.expression)
        elif isinstance(node, PrintStatement):
            self.resolve_node(node.expression)
        elif isinstance(node, LetStatement):
            self.declare(node.name)
            self.resolve_node(node.initializer)
            self.define(node.name)
        elif isinstance(node, BlockStatement):
            self.begin_scope()
            for statement in node.body:
                self.resolve_node(statement)
            self.end_scope()
        elif isinstance(node, IfStatement):
            self.resolve_node(node.test)
            self.resolve_node(node.consequent)
            self.resolve_node(node.alternate)
        elif isinstance(node, WhileStatement):
            self.blocks.append(BlockType.LOOP)
            self.resolve_node(node.test)
            self.resolve_node(node.increment)
            self.resolve_node(node.body)
            self.blocks.pop()
        elif isinstance(node, ForeachStatement):
            self.resolve_foreach(node)
        elif isinstance(node, FunctionStatement):
            self.declare(node.name)
            self.define(node.name)
            self.resolve_function(node, BlockType.FUNCTION)
        elif isinstance(node, ClassStatement):
            self.resolve_class(node)
        elif isinstance(node, ReturnStatement):
            self.resolve_return(node)
        elif isinstance(node, ExitStatement):
            if self.blocks[-1] != BlockType.LOOP:
                self.error(node.keyword, "'exit' can only be used inside loops.", ErrorCode.UNSYNTACTIC_EXIT)
        elif isinstance(node, NextStatement):
            if self.blocks[-1] != BlockType.LOOP:
                self.error(node.keyword, "'next' can only be used inside loops.", ErrorCode.UNSYNTACTIC_NEXT)
        else:
            raise TypeError(f'Unknown statement {node!r}')

    def resolve_foreach(self, node: ForeachStatement):
        # the iterable is evaluated before the loop scope exists
        self.resolve_node(node.iterable)
        self.blocks.append(BlockType.LOOP)
        self.begin_scope()
        self.declare(node.iterator)
        self.define(node.iterator)
        if node.index is not None:
            self.declare(node.index)
            self.define(node.index)
        self.resolve_node(node.body)
        self.end_scope()
        self.blocks.pop()

    def resolve_return(self, node: ReturnStatement):
        function_type = self.nearest_function_block()
        if function_type == BlockType.NONE:
            self.error(node.keyword, "Can't return outside methods or functions.", ErrorCode.UNSYNTACTIC_RETURN)
            return
        if node.value is not None:
            if function_type == BlockType.INITIALIZER:
                self.error(node.keyword, "Can't return a value from an initializer.", ErrorCode.UNSYNTACTIC_RETURN)
                return
            self.resolve_node(node.value)

    def resolve_class(self, node: ClassStatement):
        if self.scopes or self.blocks[-1] != BlockType.NONE:
            self.error(node.name, 'Classes can only be declared in the outermost scope.', ErrorCode.NESTED_CLASS)
            return

        enclosing_class = self.current_class
        self.current_class = ClassType.CLASS

        self.declare(node.name)
        self.define(node.name)

        if node.superclass is not None:
            if node.name.lexeme == node.superclass.name.lexeme:
                self.error(node.superclass.name, "A class can't inherit from itself.", ErrorCode.SELF_INHERITANCE)
                self.current_class = enclosing_class
                return
            self.resolve_node(node.superclass)
            self.current_class = ClassType.SUBCLASS
            self.begin_scope()
            self.scopes[-1]['super'] = True

        self.begin_scope()
        self.scopes[-1]['this'] = True
        for method in node.methods:
            block_type = BlockType.INITIALIZER if method.name.lexeme == 'init' else BlockType.METHOD
            self.resolve_function(method, block_type)
        self.end_scope()

        if node.superclass is not None:
            self.end_scope()

        self.current_class = enclosing_class

    def resolve_expression(self, node: Expression):
        if isinstance(node, Literal):
            pass
        elif isinstance(node, Identifier):
            if self.scopes and self.scopes[-1].get(node.name.lexeme) is False:
                self.error(node.name, "Can't read local variable in its own initializer.", ErrorCode.SELF_REFERENCE)
            self.resolve_local(node, node.name)
        elif isinstance(node, AssignmentExpression):
            self.resolve_node(node.value)
            self.resolve_local(node, node.name)
        elif isinstance(node, IncrementExpression):
            self.resolve_node(node.target)
        elif isinstance(node, ThisExpression):
            if self.current_class == ClassType.NONE:
                self.error(node.keyword, "Can't use 'this' outside of a class.", ErrorCode.UNSYNTACTIC_THIS)
                return
            self.resolve_local(node, node.keyword)
        elif isinstance(node, SuperExpression):
            if self.current_class == ClassType.NONE:
                self.error(node.keyword, "Can't use 'super' outside of a class.", ErrorCode.UNSYNTACTIC_SUPER)
                return
            if self.current_class != ClassType.SUBCLASS:
                self.error(node.keyword, "Can't use 'super' in a class with no superclass.",
                           ErrorCode.UNSYNTACTIC_SUPER)
                return
            self.resolve_local(node, node.keyword)
        elif isinstance(node, GroupingExpression):
            self.resolve_node(node.expression)
        elif isinstance(node, UnaryExpression):
            self.resolve_node(node.right)
        elif isinstance(node, (BinaryExpression, LogicalExpression)):
            self.resolve_node(node.left)
            self.resolve_node(node.right)
        elif isinstance(node, CallExpression):
            self.resolve_node(node.callee)
            for argument in node.arguments:
                self.resolve_node(argument)
        elif isinstance(node, GetExpression):
            self.resolve_node(node.object)
        elif isinstance(node, PutExpression):
            self.resolve_node(node.value)
            self.resolve_node(node.object)
        elif isinstance(node, IndexExpression):
            self.resolve_node(node.container)
            self.resolve_node(node.index)
        elif isinstance(node, IndexAssignmentExpression):
            self.resolve_node(node.container)
            self.resolve_node(node.index)
            self.resolve_node(node.value)
        elif isinstance(node, SetExpression):
            for value in node.values:
                self.resolve_node(value)
        else:
            raise TypeError(f'Unknown expression {node!r}')
