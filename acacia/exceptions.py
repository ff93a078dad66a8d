import logging
from enum import Enum
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .lexer import Token

logger = logging.getLogger(__name__)


class ErrorCode(Enum):
    # lexer diagnostics
    UNEXPECTED_CHARACTER = 'Unexpected character'
    UNTERMINATED_STRING = 'Unterminated string'

    # ParserError
    UNEXPECTED_TOKEN = 'Unexpected token'
    INVALID_ASSIGNMENT_TARGET = 'Invalid assignment target'
    INVALID_INCREMENT_TARGET = 'Invalid increment target'

    # resolver diagnostics
    VARIABLE_REDECLARED = 'Variable redeclared'
    SELF_REFERENCE = 'Self-referential initializer'
    UNSYNTACTIC_EXIT = 'Unsyntactic exit'
    UNSYNTACTIC_NEXT = 'Unsyntactic next'
    UNSYNTACTIC_RETURN = 'Unsyntactic return'
    UNSYNTACTIC_THIS = 'Unsyntactic this'
    UNSYNTACTIC_SUPER = 'Unsyntactic super'
    NESTED_CLASS = 'Nested class'
    SELF_INHERITANCE = 'Self inheritance'
    NESTING_TOO_DEEP = 'Nesting too deep'

    # AcaciaRuntimeError
    TYPE_ERROR = 'Type Error'
    UNDEFINED_VARIABLE = 'Undefined variable'
    UNDEFINED_PROPERTY = 'Undefined property'
    CALL_ERROR = 'Call Error'
    ARITY_ERROR = 'Arity Error'
    INDEX_ERROR = 'Index Error'
    NATIVE_ERROR = 'Native Function Error'


class Severity(Enum):
    USAGE = 64
    STATIC = 65
    RUNTIME = 70

    @property
    def exit_code(self) -> int:
        return self.value


class InterpreterError(Exception):
    def __init__(self, error_code: ErrorCode, message: str = ''):
        super().__init__(message)
        self.error_code: ErrorCode = error_code
        self.message: str = message

    def __repr__(self):
        return f'{self.__class__.__name__}: {self.error_code.value}: {self.message}'


class ParserError(InterpreterError):
    pass


class AcaciaRuntimeError(InterpreterError):
    def __init__(self, token: 'Token', message: str, error_code: ErrorCode = ErrorCode.TYPE_ERROR):
        super().__init__(error_code, message)
        self.token: 'Token' = token


class Diagnostic:
    def __init__(self,
                 severity: Severity,
                 line: int,
                 message: str,
                 where: str = '',
                 column: int = -1,
                 length: int = -1,
                 error_code: Optional[ErrorCode] = None):
        self.severity: Severity = severity
        self.line: int = line
        self.message: str = message
        self.where: str = where
        self.column: int = column
        self.length: int = length
        self.error_code: Optional[ErrorCode] = error_code

    def __str__(self):
        return f'[line {self.line}] Error{self.where}: {self.message}'

    def __repr__(self):
        return f'Diagnostic({self.severity.name}, {str(self)!r})'


class ErrorReporter:
    """Collects diagnostics from every stage of a single run."""

    def __init__(self):
        self.diagnostics: List[Diagnostic] = list()

    @property
    def had_error(self) -> bool:
        return any(d.severity == Severity.STATIC for d in self.diagnostics)

    @property
    def had_runtime_error(self) -> bool:
        return any(d.severity == Severity.RUNTIME for d in self.diagnostics)

    def report(self, diagnostic: Diagnostic):
        logger.debug('reported %r', diagnostic)
        self.diagnostics.append(diagnostic)

    def error_at_line(self, line: int, message: str, error_code: Optional[ErrorCode] = None):
        self.report(Diagnostic(Severity.STATIC, line, message, error_code=error_code))

    def error(self, token: 'Token', message: str, error_code: Optional[ErrorCode] = None):
        from .lexer import TokenType

        if token.type == TokenType.EOF:
            where = ' at end'
        else:
            where = f" at '{token.lexeme}'"
        self.report(Diagnostic(Severity.STATIC, token.line, message, where,
                               column=token.column, length=token.length, error_code=error_code))

    def runtime_error(self, error: AcaciaRuntimeError):
        self.report(Diagnostic(Severity.RUNTIME, error.token.line, error.message,
                               column=error.token.column, length=error.token.length,
                               error_code=error.error_code))
