from typing import Dict, Optional, TYPE_CHECKING

from .exceptions import AcaciaRuntimeError, ErrorCode
from .lexer import Token

if TYPE_CHECKING:
    from .acacia_data import T_Data


class Environment:
    """One lexical scope. Closures hold a reference to it, so it is shared, never copied."""

    def __init__(self, enclosing: Optional['Environment'] = None):
        self.enclosing: Optional[Environment] = enclosing
        self.variables: Dict[str, 'T_Data'] = dict()

    def __repr__(self):
        return f'Environment({list(self.variables)!r}, enclosing={self.enclosing is not None})'

    def define(self, name: Token, value: 'T_Data'):
        if name.lexeme in self.variables:
            raise AcaciaRuntimeError(name, f"Variable '{name.lexeme}' already exists.",
                                     ErrorCode.VARIABLE_REDECLARED)
        self.variables[name.lexeme] = value

    def hard_define(self, name: str, value: 'T_Data'):
        self.variables[name] = value

    def get(self, name: Token) -> 'T_Data':
        environment = self
        while environment is not None:
            if name.lexeme in environment.variables:
                return environment.variables[name.lexeme]
            environment = environment.enclosing
        raise AcaciaRuntimeError(name, f"Undefined variable '{name.lexeme}'.", ErrorCode.UNDEFINED_VARIABLE)

    def assign(self, name: Token, value: 'T_Data'):
        environment = self
        while environment is not None:
            if name.lexeme in environment.variables:
                environment.variables[name.lexeme] = value
                return
            environment = environment.enclosing
        raise AcaciaRuntimeError(name, f"Undefined variable '{name.lexeme}'.", ErrorCode.UNDEFINED_VARIABLE)

    def ancestor(self, distance: int) -> 'Environment':
        environment = self
        for _ in range(distance):
            environment = environment.enclosing
        return environment

    def get_at(self, distance: int, name: str) -> 'T_Data':
        return self.ancestor(distance).variables[name]

    def assign_at(self, distance: int, name: Token, value: 'T_Data'):
        self.ancestor(distance).variables[name.lexeme] = value
