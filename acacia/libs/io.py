from ..acacia_data import NativeFunction, VARIADIC, T_Data, stringify
from ..exceptions import AcaciaRuntimeError, ErrorCode
from ..lexer import Token
from .convert import check_target_type, coerce_text


def expand_newlines(text: str) -> str:
    # the two characters `\n` become a line break only when printed
    return text.replace('\\n', '\n')


def join_arguments(arguments) -> str:
    return expand_newlines(' '.join(stringify(argument) for argument in arguments))


def native_print(interpreter, location: Token, *arguments: T_Data):
    interpreter.write(join_arguments(arguments))


def native_println(interpreter, location: Token, *arguments: T_Data):
    interpreter.write(join_arguments(arguments) + '\n')


def native_input(interpreter, location: Token, *arguments: T_Data) -> T_Data:
    if len(arguments) > 1:
        raise AcaciaRuntimeError(location, f"Expected 0 or 1 arguments but got {len(arguments)} (in 'input').",
                                 ErrorCode.ARITY_ERROR)
    target_type = 'any'
    if arguments:
        target_type = check_target_type(location, arguments[0])
    line = interpreter.read_line()
    if line is None:
        raise AcaciaRuntimeError(location, 'No line of input available.', ErrorCode.NATIVE_ERROR)
    return coerce_text(location, line, target_type)


lib_table = {
    'print': NativeFunction(name='print', params_num=VARIADIC, func=native_print),
    'println': NativeFunction(name='println', params_num=VARIADIC, func=native_println),
    'input': NativeFunction(name='input', params_num=VARIADIC, func=native_input),
}
