import logging
import math
import sys
import weakref
from enum import Enum
from typing import List, MutableMapping, Optional, TextIO

from .acacia_data import (
    T_Data, NumberData, StringData, SetData, VARIADIC,
    AcaciaCallable, AcaciaFunction, AcaciaClass, AcaciaInstance,
    is_truthy, is_equal, stringify,
)
from .environment import Environment
from .exceptions import AcaciaRuntimeError, ErrorCode
from .lexer import Token, TokenType
from .libs import lib_table, set_methods, string_methods
from .libs.io import expand_newlines
from .parser import (
    Expression, Statement, Literal, Identifier, ThisExpression, SuperExpression, GroupingExpression,
    UnaryExpression, BinaryExpression, LogicalExpression, AssignmentExpression, IncrementExpression,
    CallExpression, GetExpression, PutExpression, IndexExpression, IndexAssignmentExpression, SetExpression,
    ExpressionStatement, PrintStatement, LetStatement, BlockStatement, IfStatement, WhileStatement,
    ForeachStatement, FunctionStatement, ClassStatement, ReturnStatement, ExitStatement, NextStatement,
    first_token,
)

logger = logging.getLogger(__name__)


class CompletionType(Enum):
    NORMAL = 0
    RETURN = 1
    BREAK = 2
    CONTINUE = 3


class Completion:
    """How a statement finished. Loops absorb BREAK/CONTINUE, function calls absorb RETURN."""

    NORMAL: 'Completion'
    BREAK: 'Completion'
    CONTINUE: 'Completion'

    def __init__(self, completion_type: CompletionType, value: T_Data = None):
        self.type: CompletionType = completion_type
        self.value: T_Data = value

    def __repr__(self):
        return f'Completion({self.type.name}, {self.value!r})'


Completion.NORMAL = Completion(CompletionType.NORMAL)
Completion.BREAK = Completion(CompletionType.BREAK)
Completion.CONTINUE = Completion(CompletionType.CONTINUE)

comparison_operators = {
    TokenType.GREATER: lambda a, b: a > b,
    TokenType.GREATER_EQUAL: lambda a, b: a >= b,
    TokenType.LESS: lambda a, b: a < b,
    TokenType.LESS_EQUAL: lambda a, b: a <= b,
}

increment_operators = {
    TokenType.INCREMENT: lambda v: v + 1.0,
    TokenType.DECREMENT: lambda v: v - 1.0,
    TokenType.DOUBLE: lambda v: v * 2.0,
    TokenType.HALVE: lambda v: v / 2.0,
}


def divide(left: float, right: float) -> float:
    if right == 0.0:
        if left == 0.0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)
    return left / right


def remainder(left: float, right: float) -> float:
    try:
        return math.fmod(left, right)
    except ValueError:
        # fmod(x, 0) and fmod(inf, y)
        return math.nan


def is_whole_number(value: T_Data) -> bool:
    return isinstance(value, NumberData) and math.isfinite(value) and value == math.floor(value)


class Interpreter:
    def __init__(self,
                 stdout: Optional[TextIO] = None,
                 stdin: Optional[TextIO] = None,
                 repl_mode: bool = False):
        self.stdout: Optional[TextIO] = stdout
        self.stdin: Optional[TextIO] = stdin
        self.repl_mode: bool = repl_mode
        self.globals: Environment = Environment()
        self.environment: Environment = self.globals
        # entries are dropped together with their nodes
        self.locals: MutableMapping[Expression, int] = weakref.WeakKeyDictionary()

        for name, native in lib_table.items():
            self.globals.hard_define(name, native)
        logger.debug('installed %d native functions', len(lib_table))

    # host streams, looked up at use so that a swapped sys.stdout is honoured

    def write(self, text: str):
        stream = self.stdout if self.stdout is not None else sys.stdout
        stream.write(text)
        stream.flush()

    def read_line(self) -> Optional[str]:
        stream = self.stdin if self.stdin is not None else sys.stdin
        line = stream.readline()
        if line == '':
            return None
        return line.rstrip('\r\n')

    def resolve(self, expression: Expression, depth: int):
        self.locals[expression] = depth

    def interpret(self, statements: List[Statement]):
        for statement in statements:
            try:
                self.interpret_statement(statement)
            except RecursionError:
                token = first_token(statement)
                if token is None:
                    raise
                raise AcaciaRuntimeError(token, 'Stack overflow.', ErrorCode.CALL_ERROR) from None

    def interpret_statement(self, statement: Statement):
        if self.repl_mode and isinstance(statement, ExpressionStatement):
            value = self.evaluate(statement.expression)
            if value is not None:
                self.write(stringify(value) + '\n')
        else:
            self.execute(statement)

    # statements

    def execute_block(self, statements, environment: Environment) -> Completion:
        previous = self.environment
        try:
            self.environment = environment
            for statement in statements:
                completion = self.execute(statement)
                if completion.type != CompletionType.NORMAL:
                    return completion
            return Completion.NORMAL
        finally:
            self.environment = previous

    def execute(self, node: Statement) -> Completion:
        if isinstance(node, ExpressionStatement):
            self.evaluate(node.expression)
        elif isinstance(node, PrintStatement):
            self.write(expand_newlines(stringify(self.evaluate(node.expression))) + '\n')
        elif isinstance(node, LetStatement):
            value = None
            if node.initializer is not None:
                value = self.evaluate(node.initializer)
            self.environment.define(node.name, value)
        elif isinstance(node, BlockStatement):
            return self.execute_block(node.body, Environment(self.environment))
        elif isinstance(node, IfStatement):
            if is_truthy(self.evaluate(node.test)):
                return self.execute(node.consequent)
            elif node.alternate is not None:
                return self.execute(node.alternate)
        elif isinstance(node, WhileStatement):
            return self.execute_while(node)
        elif isinstance(node, ForeachStatement):
            return self.execute_foreach(node)
        elif isinstance(node, FunctionStatement):
            self.environment.define(node.name, AcaciaFunction(node, self.environment))
        elif isinstance(node, ClassStatement):
            self.execute_class(node)
        elif isinstance(node, ReturnStatement):
            value = None
            if node.value is not None:
                value = self.evaluate(node.value)
            return Completion(CompletionType.RETURN, value)
        elif isinstance(node, ExitStatement):
            return Completion.BREAK
        elif isinstance(node, NextStatement):
            return Completion.CONTINUE
        else:
            raise TypeError(f'Unknown statement {node!r}')
        return Completion.NORMAL

    def execute_while(self, node: WhileStatement) -> Completion:
        while is_truthy(self.evaluate(node.test)):
            try:
                completion = self.execute(node.body)
                if completion.type == CompletionType.BREAK:
                    break
                if completion.type == CompletionType.RETURN:
                    return completion
            finally:
                # runs after `exit` and `next` as well
                if node.increment is not None:
                    self.evaluate(node.increment)
        return Completion.NORMAL

    def execute_foreach(self, node: ForeachStatement) -> Completion:
        iterable = self.evaluate(node.iterable)
        if not isinstance(iterable, (SetData, StringData)):
            raise AcaciaRuntimeError(node.iterable_token, 'Can only iterate over sets and strings.',
                                     ErrorCode.TYPE_ERROR)

        environment = Environment(self.environment)
        environment.hard_define(node.iterator.lexeme, None)
        if node.index is not None:
            environment.hard_define(node.index.lexeme, 0.0)

        previous = self.environment
        self.environment = environment
        try:
            position = 0
            # the length is read on every pass, the body may grow or shrink the set
            while position < len(iterable):
                environment.hard_define(node.iterator.lexeme, iterable[position])
                if node.index is not None:
                    environment.hard_define(node.index.lexeme, float(position))
                try:
                    completion = self.execute(node.body)
                    if completion.type == CompletionType.BREAK:
                        break
                    if completion.type == CompletionType.RETURN:
                        return completion
                finally:
                    position += 1
        finally:
            self.environment = previous
        return Completion.NORMAL

    def execute_class(self, node: ClassStatement):
        superclass = None
        if node.superclass is not None:
            superclass = self.evaluate(node.superclass)
            if not isinstance(superclass, AcaciaClass):
                raise AcaciaRuntimeError(node.superclass.name, 'Superclass must be a class.', ErrorCode.TYPE_ERROR)

        self.environment.define(node.name, None)

        if superclass is not None:
            self.environment = Environment(self.environment)
            self.environment.hard_define('super', superclass)

        methods = dict()
        for method in node.methods:
            methods[method.name.lexeme] = AcaciaFunction(method, self.environment, method.name.lexeme == 'init')
        klass = AcaciaClass(node.name.lexeme, superclass, methods)

        if superclass is not None:
            self.environment = self.environment.enclosing

        self.environment.assign(node.name, klass)

    # expressions

    def look_up_variable(self, name: Token, expression: Expression) -> T_Data:
        distance = self.locals.get(expression)
        if distance is not None:
            return self.environment.get_at(distance, name.lexeme)
        return self.globals.get(name)

    def assign_variable(self, name: Token, expression: Expression, value: T_Data):
        distance = self.locals.get(expression)
        if distance is not None:
            self.environment.assign_at(distance, name, value)
        else:
            self.globals.assign(name, value)

    def evaluate(self, node: Expression) -> T_Data:
        if isinstance(node, Literal):
            return node.value
        elif isinstance(node, Identifier):
            return self.look_up_variable(node.name, node)
        elif isinstance(node, AssignmentExpression):
            value = self.evaluate(node.value)
            self.assign_variable(node.name, node, value)
            return value
        elif isinstance(node, IncrementExpression):
            return self.evaluate_increment(node)
        elif isinstance(node, ThisExpression):
            return self.look_up_variable(node.keyword, node)
        elif isinstance(node, SuperExpression):
            return self.evaluate_super(node)
        elif isinstance(node, GroupingExpression):
            return self.evaluate(node.expression)
        elif isinstance(node, UnaryExpression):
            right = self.evaluate(node.right)
            if node.operator.type == TokenType.SUB:
                self.check_number_operand(node.operator, right)
                return -right
            return not is_truthy(right)
        elif isinstance(node, BinaryExpression):
            return self.evaluate_binary(node)
        elif isinstance(node, LogicalExpression):
            left = self.evaluate(node.left)
            if node.operator.type == TokenType.OR:
                if is_truthy(left):
                    return left
            elif not is_truthy(left):
                return left
            return self.evaluate(node.right)
        elif isinstance(node, CallExpression):
            return self.evaluate_call(node)
        elif isinstance(node, GetExpression):
            return self.evaluate_get(node)
        elif isinstance(node, PutExpression):
            instance = self.evaluate(node.object)
            if not isinstance(instance, AcaciaInstance):
                raise AcaciaRuntimeError(node.name, 'Only instances have fields.', ErrorCode.UNDEFINED_PROPERTY)
            value = self.evaluate(node.value)
            instance.set(node.name, value)
            return value
        elif isinstance(node, IndexExpression):
            container = self.evaluate(node.container)
            index = self.evaluate(node.index)
            if not isinstance(container, (SetData, StringData)):
                raise AcaciaRuntimeError(node.bracket, 'Can only index sets and strings.', ErrorCode.INDEX_ERROR)
            return container[self.normalize_index(node.bracket, container, index)]
        elif isinstance(node, IndexAssignmentExpression):
            container = self.evaluate(node.container)
            index = self.evaluate(node.index)
            value = self.evaluate(node.value)
            self.check_assignable_container(node.bracket, container)
            container[self.normalize_index(node.bracket, container, index)] = value
            return value
        elif isinstance(node, SetExpression):
            return [self.evaluate(value) for value in node.values]
        raise TypeError(f'Unknown expression {node!r}')

    def evaluate_binary(self, node: BinaryExpression) -> T_Data:
        left = self.evaluate(node.left)
        right = self.evaluate(node.right)
        operator_type = node.operator.type

        if operator_type == TokenType.EQUAL:
            return is_equal(left, right)
        if operator_type == TokenType.NOT_EQUAL:
            return not is_equal(left, right)

        if operator_type == TokenType.ADD:
            if isinstance(left, NumberData) and isinstance(right, NumberData):
                return left + right
            if isinstance(left, StringData) or isinstance(right, StringData):
                return stringify(left) + stringify(right)
            raise AcaciaRuntimeError(node.operator, 'Operands must be two numbers or at least one string.')

        if operator_type in comparison_operators:
            compare = comparison_operators[operator_type]
            if isinstance(left, NumberData) and isinstance(right, NumberData):
                return compare(left, right)
            # strings order by length
            if isinstance(left, StringData) and isinstance(right, StringData):
                return compare(len(left), len(right))
            raise AcaciaRuntimeError(node.operator, 'Operands must be two numbers or two strings.')

        self.check_number_operands(node.operator, left, right)
        if operator_type == TokenType.SUB:
            return left - right
        if operator_type == TokenType.MUL:
            return left * right
        if operator_type == TokenType.DIV:
            return divide(left, right)
        if operator_type == TokenType.MOD:
            return remainder(left, right)
        raise TypeError(f'Unknown binary operator {node.operator!r}')

    def evaluate_call(self, node: CallExpression) -> T_Data:
        callee = self.evaluate(node.callee)
        arguments = [self.evaluate(argument) for argument in node.arguments]

        if not isinstance(callee, AcaciaCallable):
            raise AcaciaRuntimeError(node.paren, 'Can only call functions and classes.', ErrorCode.CALL_ERROR)
        arity = callee.arity()
        if arity != VARIADIC and len(arguments) != arity:
            raise AcaciaRuntimeError(node.paren, f'Expected {arity} arguments but got {len(arguments)}.',
                                     ErrorCode.ARITY_ERROR)
        try:
            return callee.call(self, arguments, node.paren)
        except RecursionError:
            raise AcaciaRuntimeError(node.paren, 'Stack overflow.', ErrorCode.CALL_ERROR) from None

    def evaluate_get(self, node: GetExpression) -> T_Data:
        receiver = self.evaluate(node.object)
        if isinstance(receiver, AcaciaInstance):
            return receiver.get(node.name)
        if isinstance(receiver, SetData):
            method_table, owner = set_methods, 'set'
        elif isinstance(receiver, StringData):
            method_table, owner = string_methods, 'string'
        else:
            raise AcaciaRuntimeError(node.name, 'Only instances have properties.', ErrorCode.UNDEFINED_PROPERTY)
        method = method_table.get(node.name.lexeme)
        if method is None:
            raise AcaciaRuntimeError(node.name, f"Undefined {owner} method '{node.name.lexeme}'.",
                                     ErrorCode.UNDEFINED_PROPERTY)
        return method.bind(receiver)

    def evaluate_super(self, node: SuperExpression) -> T_Data:
        distance = self.locals[node]
        superclass = self.environment.get_at(distance, 'super')
        # `this` lives in the scope just inside the one holding `super`
        instance = self.environment.get_at(distance - 1, 'this')
        method = superclass.find_method(node.method.lexeme)
        if method is None:
            raise AcaciaRuntimeError(node.method, f"Undefined property '{node.method.lexeme}'.",
                                     ErrorCode.UNDEFINED_PROPERTY)
        return method.bind(instance)

    def evaluate_increment(self, node: IncrementExpression) -> T_Data:
        update = increment_operators[node.operator.type]
        target = node.target
        if isinstance(target, Identifier):
            current = self.look_up_variable(target.name, target)
            self.check_number_operand(node.operator, current)
            value = update(current)
            self.assign_variable(target.name, target, value)
            return value

        # nested targets like a[i][j]++ evaluate the inner containers as plain index reads
        container = self.evaluate(target.container)
        index = self.evaluate(target.index)
        self.check_assignable_container(target.bracket, container)
        position = self.normalize_index(target.bracket, container, index)
        current = container[position]
        self.check_number_operand(node.operator, current)
        value = update(current)
        container[position] = value
        return value

    # checks

    @staticmethod
    def check_number_operand(operator: Token, operand: T_Data):
        if not isinstance(operand, NumberData):
            raise AcaciaRuntimeError(operator, 'Operand must be a number.')

    @staticmethod
    def check_number_operands(operator: Token, left: T_Data, right: T_Data):
        if not isinstance(left, NumberData) or not isinstance(right, NumberData):
            raise AcaciaRuntimeError(operator, 'Operands must be numbers.')

    @staticmethod
    def check_assignable_container(bracket: Token, container: T_Data):
        if isinstance(container, StringData):
            raise AcaciaRuntimeError(bracket, 'Strings are immutable.', ErrorCode.INDEX_ERROR)
        if not isinstance(container, SetData):
            raise AcaciaRuntimeError(bracket, 'Can only assign to indices of sets.', ErrorCode.INDEX_ERROR)

    @staticmethod
    def normalize_index(bracket: Token, container, index: T_Data) -> int:
        if not is_whole_number(index):
            raise AcaciaRuntimeError(bracket, 'Index must be a whole number.', ErrorCode.INDEX_ERROR)
        length = len(container)
        if length == 0:
            raise AcaciaRuntimeError(bracket, 'Index out of range.', ErrorCode.INDEX_ERROR)
        index = int(index)
        # non-negative indices wrap, negative ones are shifted once
        position = index % length if index >= 0 else index + length
        if position < 0:
            raise AcaciaRuntimeError(bracket, 'Index out of range.', ErrorCode.INDEX_ERROR)
        return position
