import io

import pytest

from acacia import Acacia


class Result:
    def __init__(self, did_fail, diagnostics, output):
        self.did_fail = did_fail
        self.diagnostics = diagnostics
        self.output = output

    @property
    def messages(self):
        return [diagnostic.message for diagnostic in self.diagnostics]


def run_source(source: str, stdin: str = '', repl_mode: bool = False) -> Result:
    stdout = io.StringIO()
    acacia = Acacia(stdout=stdout, stdin=io.StringIO(stdin), repl_mode=repl_mode)
    did_fail, diagnostics = acacia.run(source)
    return Result(did_fail, diagnostics, stdout.getvalue())


@pytest.fixture
def run():
    return run_source


@pytest.fixture
def session():
    stdout = io.StringIO()
    acacia = Acacia(stdout=stdout, stdin=io.StringIO(''), repl_mode=True)
    return acacia, stdout
