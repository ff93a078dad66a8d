from typing import List

from ..acacia_data import (
    NativeMethod, T_Data, AcaciaCallable, AcaciaInstance, StringData,
    is_equal, stringify, weight,
)
from ..exceptions import AcaciaRuntimeError, ErrorCode
from ..lexer import Token


def set_join(interpreter, location: Token, receiver: List[T_Data], delimiter: T_Data) -> str:
    if not isinstance(delimiter, StringData):
        raise AcaciaRuntimeError(location, 'Expected string as argument.', ErrorCode.TYPE_ERROR)
    return delimiter.join(item if isinstance(item, StringData) else stringify(item) for item in receiver)


def set_contains(interpreter, location: Token, receiver: List[T_Data], value: T_Data) -> bool:
    return any(is_equal(item, value) for item in receiver)


def set_sort(interpreter, location: Token, receiver: List[T_Data]):
    for item in receiver:
        if isinstance(item, (AcaciaCallable, AcaciaInstance)):
            raise AcaciaRuntimeError(location, "Can't sort functions or classes.", ErrorCode.TYPE_ERROR)
    receiver.sort(key=weight)


def set_reverse(interpreter, location: Token, receiver: List[T_Data]):
    receiver.reverse()


def set_push(interpreter, location: Token, receiver: List[T_Data], value: T_Data):
    receiver.append(value)


def set_pop(interpreter, location: Token, receiver: List[T_Data]) -> T_Data:
    if not receiver:
        return None
    return receiver.pop()


# join and contains only read the receiver, the rest mutate it in place
set_methods = {
    'join': NativeMethod(name='join', params_num=1, func=set_join, owner='set'),
    'contains': NativeMethod(name='contains', params_num=1, func=set_contains, owner='set'),
    'sort': NativeMethod(name='sort', params_num=0, func=set_sort, owner='set'),
    'reverse': NativeMethod(name='reverse', params_num=0, func=set_reverse, owner='set'),
    'push': NativeMethod(name='push', params_num=1, func=set_push, owner='set'),
    'pop': NativeMethod(name='pop', params_num=0, func=set_pop, owner='set'),
}
