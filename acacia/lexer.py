import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from .exceptions import ErrorCode, ErrorReporter

logger = logging.getLogger(__name__)


class TokenType(Enum):
    # reserved word
    AND = 'and'
    CLASS = 'class'
    DEF = 'def'
    ELSE = 'else'
    EXIT = 'exit'
    FALSE = 'false'
    FOR = 'for'
    FOREACH = 'foreach'
    IF = 'if'
    LET = 'let'
    MATCH = 'match'
    NEXT = 'next'
    NIL = 'nil'
    OR = 'or'
    PRINT = 'print'
    RETURN = 'return'
    SUPER = 'super'
    THIS = 'this'
    TRUE = 'true'
    WHILE = 'while'
    WITH = 'with'

    # symbols
    # triple character symbols
    DOUBLE = '+++'
    HALVE = '---'

    # double character symbols
    EQUAL = '=='
    NOT_EQUAL = '!='
    LESS_EQUAL = '<='
    GREATER_EQUAL = '>='
    INCREMENT = '++'
    DECREMENT = '--'

    # single character symbols
    LPAREN = '('
    RPAREN = ')'

    LBRACE = '{'
    RBRACE = '}'

    LBRACKET = '['
    RBRACKET = ']'

    COMMA = ','
    SEMI = ';'
    POINT = '.'

    ASSIGN = '='

    ADD = '+'
    SUB = '-'
    MUL = '*'
    DIV = '/'
    MOD = '%'

    NOT = '!'
    LESS = '<'
    GREATER = '>'

    # other
    NUMBER = 'NUMBER'
    STRING = 'STRING'

    ID = 'ID'
    EOF = 'EOF'

    @classmethod
    def _build_reserved_dict(cls, start, end) -> Dict[str, 'TokenType']:
        token_list = list(cls)
        start_index = token_list.index(start)
        end_index = token_list.index(end)
        return {
            token_type.value: token_type
            for token_type in token_list[start_index:end_index + 1]
        }

    @classmethod
    def reserved_word(cls):
        return cls._build_reserved_dict(TokenType.AND, TokenType.WITH)

    @classmethod
    def triple_character_symbols(cls):
        return cls._build_reserved_dict(TokenType.DOUBLE, TokenType.HALVE)

    @classmethod
    def double_character_symbols(cls):
        return cls._build_reserved_dict(TokenType.EQUAL, TokenType.DECREMENT)

    @classmethod
    def single_character_symbols(cls):
        return cls._build_reserved_dict(TokenType.LPAREN, TokenType.GREATER)


RESERVED_WORDS = TokenType.reserved_word()
TRIPLE_CHARACTER_SYMBOLS = TokenType.triple_character_symbols()
DOUBLE_CHARACTER_SYMBOLS = TokenType.double_character_symbols()
SINGLE_CHARACTER_SYMBOLS = TokenType.single_character_symbols()

# '**' is another spelling of '+++'
DOUBLE_CHARACTER_SYMBOLS['**'] = TokenType.DOUBLE


def is_digit(char: str) -> bool:
    return '0' <= char <= '9'


@dataclass(frozen=True)
class Token:
    type: TokenType
    lexeme: str
    literal: Any = None
    line: int = -1
    column: int = -1
    length: int = -1

    def __repr__(self):
        return f'Token({self.type}, {self.lexeme!r}, {self.literal!r}, position={self.line}:{self.column})'


class Lexer:
    def __init__(self, text: str, reporter: Optional[ErrorReporter] = None):
        self.text: str = text
        self.reporter: ErrorReporter = reporter if reporter is not None else ErrorReporter()
        self.position: int = 0
        self.start: int = 0
        self.lineno: int = 1
        self.line_start: int = 0
        self.start_lineno: int = 1
        self.start_column: int = 1

    @property
    def current_char(self) -> Optional[str]:
        if self.position >= len(self.text):
            return None
        return self.text[self.position]

    @property
    def next_char(self) -> Optional[str]:
        if self.position + 1 >= len(self.text):
            return None
        return self.text[self.position + 1]

    def peek_ahead(self, count: int) -> str:
        return self.text[self.position:self.position + count]

    def advance_position(self, count: int = 1):
        for _ in range(count):
            if self.current_char == '\n':
                self.lineno += 1
                self.line_start = self.position + 1
            self.position += 1

    def make_token(self, token_type: TokenType, literal: Any = None) -> Token:
        lexeme = self.text[self.start:self.position]
        return Token(token_type, lexeme, literal,
                     line=self.start_lineno, column=self.start_column, length=len(lexeme))

    def tokenize(self) -> List[Token]:
        tokens = list()
        while True:
            token = self.get_next_token()
            tokens.append(token)
            if token.type == TokenType.EOF:
                break
        logger.debug('scanned %d tokens', len(tokens))
        return tokens

    def get_next_token(self) -> Token:
        while self.current_char is not None:
            self.start = self.position
            self.start_lineno = self.lineno
            self.start_column = self.position - self.line_start + 1
            if self.current_char.isspace():
                # whitespace only matters for line counting
                self.advance_position()
                continue
            elif self.current_char == '/' and self.next_char == '/':
                # comment runs until the end of the line
                while self.current_char is not None and self.current_char != '\n':
                    self.advance_position()
                continue
            elif is_digit(self.current_char):
                return self.scan_number()
            elif self.current_char.isalpha() or self.current_char == '_':
                return self.scan_identifier()
            elif self.current_char == '"':
                token = self.scan_string()
                if token is not None:
                    return token
                continue
            else:
                # longest symbol wins
                token_type = TRIPLE_CHARACTER_SYMBOLS.get(self.peek_ahead(3))
                if token_type is not None:
                    self.advance_position(3)
                    return self.make_token(token_type)
                token_type = DOUBLE_CHARACTER_SYMBOLS.get(self.peek_ahead(2))
                if token_type is not None:
                    self.advance_position(2)
                    return self.make_token(token_type)
                token_type = SINGLE_CHARACTER_SYMBOLS.get(self.current_char)
                if token_type is not None:
                    self.advance_position()
                    return self.make_token(token_type)
                self.reporter.error_at_line(self.lineno, 'Unexpected character.',
                                            error_code=ErrorCode.UNEXPECTED_CHARACTER)
                self.advance_position()

        self.start = self.position
        self.start_lineno = self.lineno
        self.start_column = self.position - self.line_start + 1
        return self.make_token(TokenType.EOF)

    def scan_number(self) -> Token:
        while self.current_char is not None and is_digit(self.current_char):
            self.advance_position()
        if self.current_char == '.' and self.next_char is not None and is_digit(self.next_char):
            self.advance_position()
            while self.current_char is not None and is_digit(self.current_char):
                self.advance_position()
        return self.make_token(TokenType.NUMBER, float(self.text[self.start:self.position]))

    def scan_identifier(self) -> Token:
        while self.current_char is not None and (self.current_char.isalnum() or self.current_char == '_'):
            self.advance_position()
        value = self.text[self.start:self.position]
        token_type = RESERVED_WORDS.get(value.lower())
        if token_type is None:
            token_type = TokenType.ID
        return self.make_token(token_type)

    def scan_string(self) -> Optional[Token]:
        # strings may span lines, nothing is unescaped here
        self.advance_position()
        while self.current_char is not None and self.current_char != '"':
            self.advance_position()
        if self.current_char is None:
            self.reporter.error_at_line(self.lineno, 'Unterminated string.',
                                        error_code=ErrorCode.UNTERMINATED_STRING)
            return None
        self.advance_position()
        return self.make_token(TokenType.STRING, self.text[self.start + 1:self.position - 1])
