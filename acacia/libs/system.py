import random
import time

from ..acacia_data import NativeFunction, T_Data, NumberData
from ..exceptions import AcaciaRuntimeError, ErrorCode
from ..lexer import Token


def native_clock(interpreter, location: Token) -> float:
    return time.time()


def native_random(interpreter, location: Token) -> float:
    return random.random()


def native_sleep(interpreter, location: Token, milliseconds: T_Data):
    if not isinstance(milliseconds, NumberData):
        raise AcaciaRuntimeError(location, "Function 'sleep' expected number as argument", ErrorCode.TYPE_ERROR)
    # no cancellation, blocks the only thread of execution
    time.sleep(max(int(milliseconds), 0) / 1000.0)


lib_table = {
    'clock': NativeFunction(name='clock', params_num=0, func=native_clock),
    'generateRandomNumber': NativeFunction(name='generateRandomNumber', params_num=0, func=native_random),
    'sleep': NativeFunction(name='sleep', params_num=1, func=native_sleep),
}
