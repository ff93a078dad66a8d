from ..acacia_data import (
    NativeFunction, T_Data, AcaciaCallable, AcaciaClass, AcaciaInstance, SetData, StringData,
    acacia_type, stringify,
)
from ..exceptions import AcaciaRuntimeError, ErrorCode
from ..lexer import Token


def check_class(location: Token, klass: T_Data) -> AcaciaClass:
    if not isinstance(klass, AcaciaClass):
        raise AcaciaRuntimeError(location, f"'{stringify(klass)}' is not a valid class", ErrorCode.TYPE_ERROR)
    return klass


def native_len(interpreter, location: Token, value: T_Data) -> float:
    if isinstance(value, (SetData, StringData)):
        return float(len(value))
    raise AcaciaRuntimeError(location, "Function 'len' expected set or string as argument", ErrorCode.TYPE_ERROR)


def native_type(interpreter, location: Token, value: T_Data) -> str:
    return acacia_type(value)


def native_callable(interpreter, location: Token, value: T_Data) -> bool:
    return isinstance(value, AcaciaCallable)


def native_inherits(interpreter, location: Token, value: T_Data, klass: T_Data) -> bool:
    # direct parent only
    superior = check_class(location, klass)
    if isinstance(value, AcaciaClass):
        return value.superclass is superior
    if isinstance(value, AcaciaInstance):
        return value.klass.superclass is superior
    return False


def native_instanceof(interpreter, location: Token, value: T_Data, klass: T_Data) -> bool:
    expected = check_class(location, klass)
    if not isinstance(value, AcaciaInstance):
        return False
    current = value.klass
    while current is not None:
        if current is expected:
            return True
        current = current.superclass
    return False


lib_table = {
    'len': NativeFunction(name='len', params_num=1, func=native_len),
    'type': NativeFunction(name='type', params_num=1, func=native_type),
    'callable': NativeFunction(name='callable', params_num=1, func=native_callable),
    'inherits': NativeFunction(name='inherits', params_num=2, func=native_inherits),
    'instanceof': NativeFunction(name='instanceof', params_num=2, func=native_instanceof),
}
