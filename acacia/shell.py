"""Interactive mode. Every line is one `run` against the same interpreter."""

import cmd
import sys

from .runner import Acacia


class Shell(cmd.Cmd):
    intro = "Acacia interactive mode\nType 'quit' or press Ctrl-D to leave."
    prompt = '~#: '

    def __init__(self, acacia: Acacia, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.acacia: Acacia = acacia

    def default(self, line):
        """Runs the line as Acacia source."""
        _, diagnostics = self.acacia.run(line)
        for diagnostic in diagnostics:
            print(diagnostic, file=sys.stderr)

    def emptyline(self):
        """Do not repeat previous line on empty input."""
        return False

    def do_EOF(self, arg):
        """Leaves the shell."""
        print()
        return self.do_quit(arg)

    def do_quit(self, arg):
        """Leaves the shell."""
        return True
