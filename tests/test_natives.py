import io

import pytest

from acacia.acacia_data import stringify, weight
from acacia.exceptions import ErrorCode, Severity
from acacia.interpreter import Interpreter
from acacia.libs import lib_table, set_methods, string_methods


def output_of(run, source, stdin=''):
    result = run(source, stdin=stdin)
    assert not result.did_fail, result.diagnostics
    return result.output


def failure(run, source, stdin=''):
    result = run(source, stdin=stdin)
    assert result.did_fail
    assert result.diagnostics[-1].severity == Severity.RUNTIME
    return result.diagnostics[-1]


def test_registry_contents():
    assert set(lib_table) == {
        'clock', 'generateRandomNumber', 'print', 'println', 'input', 'sleep',
        'convert', 'len', 'type', 'callable', 'inherits', 'instanceof',
    }
    assert set(set_methods) == {'join', 'contains', 'sort', 'reverse', 'push', 'pop'}
    assert set(string_methods) == {'split', 'strip', 'replace', 'contains'}


def test_natives_are_globals():
    interpreter = Interpreter()
    assert interpreter.globals.variables['len'] is lib_table['len']


def test_println(run):
    assert output_of(run, 'println(); println("x\\ny", [1], nil);') == '\nx\ny [1] nil\n'
    assert output_of(run, 'println(println);') == '<native fn println>\n'


def test_print_native_writes_without_newline():
    # `print` is also a keyword, so the native is only reachable through the registry
    stdout = io.StringIO()
    interpreter = Interpreter(stdout=stdout)
    lib_table['print'].call(interpreter, ['a', 1.0, None], None)
    assert stdout.getvalue() == 'a 1 nil'


def test_len(run):
    assert output_of(run, 'print len([1, 2, 3]); print len("hello"); print len("");') == '3\n5\n0\n'
    assert failure(run, 'len(1);').error_code == ErrorCode.TYPE_ERROR


@pytest.mark.parametrize('value, expected', [
    ('nil', 'nil'), ('true', 'boolean'), ('"s"', 'string'), ('1', 'number'), ('[]', 'set'),
    ('A()', 'instance'), ('A', 'class'), ('f', 'function'), ('len', 'function'), ('[].push', 'function'),
])
def test_type(run, value, expected):
    assert output_of(run, f'class A {{}} def f() {{}} print type({value});') == expected + '\n'


def test_callable(run):
    source = 'class A {} def f() {} print callable(f); print callable(A); print callable("f"); print callable(A());'
    assert output_of(run, source) == 'true\ntrue\nfalse\nfalse\n'


def test_inherits_and_instanceof(run):
    source = '''
    class A {} class B < A {} class C < B {}
    print inherits(B, A);
    print inherits(C, A);
    print inherits(C(), B);
    print instanceof(C(), A);
    print instanceof(A(), C);
    print instanceof(1, A);
    '''
    assert output_of(run, source) == 'true\nfalse\ntrue\ntrue\nfalse\nfalse\n'
    assert failure(run, 'instanceof(1, 2);').message == "'2' is not a valid class"


@pytest.mark.parametrize('source, expected', [
    ('convert("12.5", "number")', '12.5'),
    ('convert("TRUE", "bool")', 'true'),
    ('convert("false", "boolean")', 'false'),
    ('convert(3, "string") + "!"', '3!'),
    ('convert("0", "any")', '0'),
    ('convert("42", "any") + 1', '421'),
    ('convert(0, "boolean")', 'false'),
    ('convert(0 / 0, "boolean")', 'true'),
    ('convert("plain", "any")', 'plain'),
    ('convert(true, "number")', '1'),
    ('convert(2, "boolean")', 'true'),
])
def test_convert(run, source, expected):
    assert output_of(run, f'print {source};') == expected + '\n'


def test_convert_failures(run):
    assert failure(run, 'convert("abc", "number");').error_code == ErrorCode.NATIVE_ERROR
    assert failure(run, 'convert("1", "list");').error_code == ErrorCode.NATIVE_ERROR
    assert failure(run, 'convert("yes", "boolean");').message == "Failed to convert 'yes' to boolean"
    assert failure(run, 'convert("1", "bool");').error_code == ErrorCode.NATIVE_ERROR
    assert failure(run, 'convert(nil, "number");').error_code == ErrorCode.NATIVE_ERROR


def test_input(run):
    source = 'let name = input(); let age = input("number"); print name + " " + (age + 1);'
    assert output_of(run, source, stdin='Ada\n36\n') == 'Ada 37\n'
    assert output_of(run, 'print input("any");', stdin='true\n') == 'true\n'


def test_input_at_end_of_stream(run):
    assert failure(run, 'input();').error_code == ErrorCode.NATIVE_ERROR


def test_clock_and_random(run):
    assert output_of(run, 'print clock() > 0;') == 'true\n'
    assert output_of(run, 'let r = generateRandomNumber(); print r >= 0 and r < 1;') == 'true\n'


def test_sleep(run):
    assert output_of(run, 'sleep(1); print "awake";') == 'awake\n'
    assert failure(run, 'sleep("1");').error_code == ErrorCode.TYPE_ERROR


def test_set_methods(run):
    source = '''
    let s = [3, 1, 2];
    s.sort();
    println(s);
    s.reverse();
    s.push("x");
    print s;
    print s.pop();
    print s.contains(2);
    print s.join("-");
    print [].pop();
    '''
    assert output_of(run, source) == '[1, 2, 3]\n[3, 2, 1, "x"]\nx\ntrue\n3-2-1\nnil\n'


def test_sort_uses_weights(run):
    assert output_of(run, 'let s = ["b", 5, nil, true, [1, 2]]; s.sort(); print s;') == \
        '[nil, true, [1, 2], 5, "b"]\n'
    assert failure(run, 'def f() {} let s = [f]; s.sort();').message == "Can't sort functions or classes."


def test_weight():
    assert weight(None) < weight(False) < weight(True) < weight(2.0) < weight('a')
    assert weight([1, 2, 3]) == 3.0
    assert weight('') == 0.0


def test_string_methods(run):
    source = '''
    print "a b  c".split();
    print "a,b,,".split(",");
    print "abc".split("");
    print "abc".split("x");
    print "  pad  ".strip();
    print "a-b-c".replace("-", "+");
    print "hello".contains("ell");
    '''
    assert output_of(run, source) == \
        '["a", "b", "", "c"]\n["a", "b"]\n["a", "b", "c"]\n["abc"]\npad\na+b+c\ntrue\n'


def test_receiver_methods_nest_in_arguments(run):
    source = 'let words = ["b", "a"]; print "x y".split().join(words.join(""));'
    assert output_of(run, source) == 'xbay\n'


def test_bound_receiver_method_is_a_value(run):
    source = 'let s = []; let push = s.push; push(1); push(2); print s; print push;'
    assert output_of(run, source) == '[1, 2]\n<set method push>\n'


def test_method_arity(run):
    assert failure(run, '[].push();').message == 'Expected 1 arguments but got 0.'
    assert failure(run, '"a".split(",", ",");').error_code == ErrorCode.ARITY_ERROR


def test_host_exceptions_become_runtime_errors(run):
    diagnostic = failure(run, 'sleep(1 / 0);')
    assert diagnostic.error_code == ErrorCode.NATIVE_ERROR


def test_stringify_numbers():
    assert stringify(3.0) == '3'
    assert stringify(3.5) == '3.5'
    assert stringify(-0.25) == '-0.25'
    assert stringify(float('inf')) == 'Infinity'


def test_input_uses_interpreter_streams():
    stdout = io.StringIO()
    interpreter = Interpreter(stdout=stdout, stdin=io.StringIO('line\r\n'))
    assert interpreter.read_line() == 'line'
    assert interpreter.read_line() is None
    interpreter.write('out')
    assert stdout.getvalue() == 'out'
