import gc
import io

from acacia import Acacia
from acacia.exceptions import Severity
from acacia.shell import Shell

import main


def test_end_to_end_sort(run):
    result = run('let s = [3,1,2]; s.sort(); println(s);')
    assert not result.did_fail
    assert result.output == '[1, 2, 3]\n'


def test_end_to_end_inheritance(run):
    source = 'class A { def init(n) { this.n = n; } } class B < A { def get() { return this.n; } } ' \
             'let b = B(5); println(b.get());'
    assert run(source).output == '5\n'


def test_static_errors_prevent_evaluation(run):
    result = run('print "before"; exit;')
    assert result.did_fail
    assert result.output == ''
    assert result.diagnostics[0].severity == Severity.STATIC
    assert str(result.diagnostics[0]) == "[line 1] Error at 'exit': 'exit' can only be used inside loops."


def test_lexer_errors_stop_before_parsing(run):
    result = run('let a = 1 $ print "x"')
    assert [d.message for d in result.diagnostics] == ['Unexpected character.']


def test_repl_declarations_persist_between_runs(session):
    acacia, stdout = session
    assert acacia.run('let x = 40;') == (False, [])
    assert acacia.run('def add(a) { return x + a; }') == (False, [])
    assert acacia.run('add(2);') == (False, [])
    assert stdout.getvalue() == '42\n'


def test_repl_echo_skips_nil(session):
    acacia, stdout = session
    acacia.run('nil; println("hi"); "text"; 1 + 1;')
    assert stdout.getvalue() == 'hi\ntext\n2\n'


def test_repl_survives_runtime_errors(session):
    acacia, stdout = session
    did_fail, diagnostics = acacia.run('undefined;')
    assert did_fail
    assert diagnostics[0].severity == Severity.RUNTIME
    acacia.run('let y = 1;')
    acacia.run('y;')
    assert stdout.getvalue() == '1\n'


def test_file_mode_does_not_echo(run):
    assert run('1 + 1;').output == ''


def test_shell_runs_lines():
    stdout = io.StringIO()
    shell = Shell(Acacia(stdout=stdout, repl_mode=True), stdin=io.StringIO(), stdout=io.StringIO())
    shell.onecmd('let a = [1, 2];')
    shell.onecmd('a.push(3);')
    shell.onecmd('a;')
    assert stdout.getvalue() == '[1, 2, 3]\n'
    assert shell.onecmd('quit')


def test_main_exit_codes(tmp_path, capsys):
    ok = tmp_path / 'ok.aca'
    ok.write_text('print "fine";')
    assert main.main([str(ok)]) == 0
    assert capsys.readouterr().out == 'fine\n'

    static = tmp_path / 'static.aca'
    static.write_text('return 1;')
    assert main.main([str(static)]) == Severity.STATIC.exit_code

    runtime = tmp_path / 'runtime.aca'
    runtime.write_text('print nope;')
    assert main.main([str(runtime)]) == Severity.RUNTIME.exit_code
    assert "Undefined variable 'nope'." in capsys.readouterr().err

    assert main.main([str(tmp_path / 'missing.aca')]) == Severity.USAGE.exit_code
    assert main.main(['a', 'b']) == Severity.USAGE.exit_code


def test_repl_drops_resolutions_of_finished_lines(session):
    acacia, stdout = session
    acacia.run('def counter() { let n = 0; def step() { n++; return n; } return step; } let tick = counter();')
    gc.collect()
    kept = len(acacia.interpreter.locals)
    assert kept > 0
    for _ in range(50):
        acacia.run('{ let a = 1; let b = a + 1; print a + b; }')
    gc.collect()
    assert len(acacia.interpreter.locals) == kept
    acacia.run('tick(); tick();')
    assert stdout.getvalue().endswith('1\n2\n')
