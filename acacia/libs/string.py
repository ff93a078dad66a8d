from typing import List

from ..acacia_data import NativeMethod, VARIADIC, T_Data, StringData
from ..exceptions import AcaciaRuntimeError, ErrorCode
from ..lexer import Token


def check_string_arguments(location: Token, *arguments: T_Data):
    for argument in arguments:
        if not isinstance(argument, StringData):
            raise AcaciaRuntimeError(location, 'Expected string as argument.', ErrorCode.TYPE_ERROR)


def string_split(interpreter, location: Token, receiver: str, *arguments: T_Data) -> List[T_Data]:
    if len(arguments) > 1:
        raise AcaciaRuntimeError(location, f"Expected 0 or 1 arguments but got {len(arguments)} (in 'split').",
                                 ErrorCode.ARITY_ERROR)
    delimiter = ' '
    if arguments:
        check_string_arguments(location, arguments[0])
        delimiter = arguments[0]
    if delimiter == '':
        return list(receiver)
    if delimiter not in receiver:
        return [receiver]
    pieces = receiver.split(delimiter)
    while pieces and pieces[-1] == '':
        pieces.pop()
    return pieces


def string_strip(interpreter, location: Token, receiver: str) -> str:
    return receiver.strip()


def string_replace(interpreter, location: Token, receiver: str, old: T_Data, new: T_Data) -> str:
    check_string_arguments(location, old, new)
    return receiver.replace(old, new)


def string_contains(interpreter, location: Token, receiver: str, part: T_Data) -> bool:
    check_string_arguments(location, part)
    return part in receiver


string_methods = {
    'split': NativeMethod(name='split', params_num=VARIADIC, func=string_split, owner='string'),
    'strip': NativeMethod(name='strip', params_num=0, func=string_strip, owner='string'),
    'replace': NativeMethod(name='replace', params_num=2, func=string_replace, owner='string'),
    'contains': NativeMethod(name='contains', params_num=1, func=string_contains, owner='string'),
}
