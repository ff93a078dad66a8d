import logging

from .lexer import Lexer, Token, TokenType
from .parser import Parser
from .resolver import Resolver
from .interpreter import Interpreter
from .runner import Acacia
from .acacia_data import stringify

logging.getLogger(__name__).addHandler(logging.NullHandler())
