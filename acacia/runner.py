import logging
import sys
from typing import List, Optional, TextIO, Tuple

from .exceptions import AcaciaRuntimeError, Diagnostic, ErrorReporter
from .interpreter import Interpreter
from .lexer import Lexer
from .parser import Parser
from .resolver import Resolver

logger = logging.getLogger(__name__)

# every Acacia call costs several host frames
RECURSION_LIMIT = 5000


class Acacia:
    """
    Chains lexer -> parser -> resolver -> interpreter over one piece of source.
    The interpreter is shared between runs, so declarations made by one `run` are
    visible to the next (the REPL relies on this).
    """

    def __init__(self,
                 stdout: Optional[TextIO] = None,
                 stdin: Optional[TextIO] = None,
                 repl_mode: bool = False):
        if sys.getrecursionlimit() < RECURSION_LIMIT:
            sys.setrecursionlimit(RECURSION_LIMIT)
        self.interpreter: Interpreter = Interpreter(stdout=stdout, stdin=stdin, repl_mode=repl_mode)

    def run(self, source: str) -> Tuple[bool, List[Diagnostic]]:
        reporter = ErrorReporter()

        tokens = Lexer(source, reporter).tokenize()
        if reporter.had_error:
            return True, reporter.diagnostics

        statements = Parser(tokens, reporter).parse()
        if reporter.had_error:
            return True, reporter.diagnostics

        Resolver(self.interpreter, reporter).resolve(statements)
        if reporter.had_error:
            return True, reporter.diagnostics

        try:
            self.interpreter.interpret(statements)
        except AcaciaRuntimeError as e:
            logger.debug('runtime error %r', e)
            reporter.runtime_error(e)
            return True, reporter.diagnostics
        return False, reporter.diagnostics
