import argparse
import logging
import sys

from acacia import Acacia
from acacia.exceptions import Severity
from acacia.shell import Shell

# lexer -> parser -> resolver -> interpreter


def run_file(path: str) -> int:
    try:
        with open(path, encoding='utf-8') as f:
            source = f.read()
    except OSError as e:
        print(f'Could not read {path}: {e.strerror}', file=sys.stderr)
        return Severity.USAGE.exit_code

    did_fail, diagnostics = Acacia().run(source)
    for diagnostic in diagnostics:
        print(diagnostic, file=sys.stderr)
    if not did_fail:
        return 0
    if any(diagnostic.severity == Severity.RUNTIME for diagnostic in diagnostics):
        return Severity.RUNTIME.exit_code
    return Severity.STATIC.exit_code


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog='acacia', description='Run an Acacia script or start the interactive shell.')
    parser.add_argument('script', nargs='?', help='script to run (interactive mode if omitted)')
    parser.add_argument('-v', '--verbose', action='store_true', help='log each stage to stderr')
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        # argparse exits with 2 on bad usage
        return Severity.USAGE.exit_code if e.code else 0

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    if args.script is not None:
        return run_file(args.script)
    Shell(Acacia(repl_mode=True)).cmdloop()
    return 0


if __name__ == '__main__':
    sys.exit(main())
