import math
from typing import Callable, Dict, List, Optional, Union, TYPE_CHECKING

from .environment import Environment
from .exceptions import AcaciaRuntimeError, ErrorCode
from .lexer import Token
from .parser import FunctionStatement

if TYPE_CHECKING:
    from .interpreter import Interpreter

# arity sentinel for callables that accept any number of arguments
VARIADIC = -1

NullData = type(None)
BooleanData = bool
NumberData = float
StringData = str
SetData = list


class AcaciaCallable:
    name: str = ''

    def arity(self) -> int:
        raise NotImplementedError

    def call(self, interpreter: 'Interpreter', arguments: List['T_Data'], location: Token) -> 'T_Data':
        raise NotImplementedError


class AcaciaFunction(AcaciaCallable):
    def __init__(self, declaration: FunctionStatement, closure: Environment, is_initializer: bool = False):
        self.declaration: FunctionStatement = declaration
        self.closure: Environment = closure
        self.is_initializer: bool = is_initializer
        self.name = declaration.name.lexeme

    def __str__(self):
        return f'<fn {self.name}>'

    def __repr__(self):
        return f'AcaciaFunction({self.name!r})'

    def bind(self, instance: 'AcaciaInstance') -> 'AcaciaFunction':
        # a fresh scope per binding; `super`, when present, sits in the captured closure
        environment = Environment(self.closure)
        environment.hard_define('this', instance)
        return AcaciaFunction(self.declaration, environment, self.is_initializer)

    def arity(self) -> int:
        return len(self.declaration.params)

    def call(self, interpreter: 'Interpreter', arguments: List['T_Data'], location: Token) -> 'T_Data':
        environment = Environment(self.closure)
        for param, argument in zip(self.declaration.params, arguments):
            environment.hard_define(param.lexeme, argument)
        completion = interpreter.execute_block(self.declaration.body, environment)
        if self.is_initializer:
            return self.closure.get_at(0, 'this')
        return completion.value


class AcaciaClass(AcaciaCallable):
    def __init__(self, name: str, superclass: Optional['AcaciaClass'], methods: Dict[str, AcaciaFunction]):
        self.name = name
        self.superclass: Optional[AcaciaClass] = superclass
        self.methods: Dict[str, AcaciaFunction] = methods

    def __str__(self):
        return self.name

    def __repr__(self):
        return f'AcaciaClass({self.name!r})'

    def find_method(self, name: str) -> Optional[AcaciaFunction]:
        klass = self
        while klass is not None:
            if name in klass.methods:
                return klass.methods[name]
            klass = klass.superclass
        return None

    def arity(self) -> int:
        initializer = self.find_method('init')
        if initializer is None:
            return 0
        return initializer.arity()

    def call(self, interpreter: 'Interpreter', arguments: List['T_Data'], location: Token) -> 'T_Data':
        instance = AcaciaInstance(self)
        initializer = self.find_method('init')
        if initializer is not None:
            initializer.bind(instance).call(interpreter, arguments, location)
        return instance


class AcaciaInstance:
    def __init__(self, klass: AcaciaClass):
        self.klass: AcaciaClass = klass
        self.fields: Dict[str, 'T_Data'] = dict()

    def __str__(self):
        return f'{self.klass.name} instance'

    def __repr__(self):
        return f'AcaciaInstance({self.klass.name!r})'

    def get(self, name: Token) -> 'T_Data':
        if name.lexeme in self.fields:
            return self.fields[name.lexeme]
        method = self.klass.find_method(name.lexeme)
        if method is not None:
            return method.bind(self)
        raise AcaciaRuntimeError(name, f"Undefined property '{name.lexeme}'.", ErrorCode.UNDEFINED_PROPERTY)

    def set(self, name: Token, value: 'T_Data'):
        self.fields[name.lexeme] = value


class NativeFunction(AcaciaCallable):
    def __init__(self, name: str, params_num: int, func: Callable):
        self.name = name
        self.params_num: int = params_num
        self.func: Callable = func

    def __str__(self):
        return f'<native fn {self.name}>'

    def __repr__(self):
        return f'NativeFunction({self.func!r})'

    def arity(self) -> int:
        return self.params_num

    def call(self, interpreter: 'Interpreter', arguments: List['T_Data'], location: Token) -> 'T_Data':
        return call_native(self.name, self.func, interpreter, location, *arguments)


class NativeMethod:
    """A host-implemented method of the set or string type; the receiver arrives as the first argument."""

    def __init__(self, name: str, params_num: int, func: Callable, owner: str):
        self.name: str = name
        self.params_num: int = params_num
        self.func: Callable = func
        self.owner: str = owner

    def __repr__(self):
        return f'NativeMethod({self.owner!r}, {self.name!r})'

    def bind(self, receiver: 'T_Data') -> 'BoundNativeMethod':
        return BoundNativeMethod(self, receiver)


class BoundNativeMethod(AcaciaCallable):
    def __init__(self, method: NativeMethod, receiver: 'T_Data'):
        self.method: NativeMethod = method
        self.receiver: 'T_Data' = receiver
        self.name = method.name

    def __str__(self):
        return f'<{self.method.owner} method {self.name}>'

    def __repr__(self):
        return f'BoundNativeMethod({self.method!r})'

    def arity(self) -> int:
        return self.method.params_num

    def call(self, interpreter: 'Interpreter', arguments: List['T_Data'], location: Token) -> 'T_Data':
        return call_native(self.name, self.method.func, interpreter, location, self.receiver, *arguments)


T_Data = Union[NullData, BooleanData, NumberData, StringData, SetData, AcaciaCallable, AcaciaInstance]


def is_truthy(value: T_Data) -> bool:
    if value is None:
        return False
    if isinstance(value, BooleanData):
        return value
    if isinstance(value, NumberData):
        return value != 0.0
    return True


def is_equal(a: T_Data, b: T_Data) -> bool:
    # nested sets are compared with an explicit stack, their depth is not bounded
    pending = [(a, b)]
    compared = set()
    while pending:
        a, b = pending.pop()
        if isinstance(a, SetData) and isinstance(b, SetData):
            if a is b or (id(a), id(b)) in compared:
                continue
            if len(a) != len(b):
                return False
            compared.add((id(a), id(b)))
            pending.extend(zip(a, b))
        elif not is_equal_value(a, b):
            return False
    return True


def is_equal_value(a: T_Data, b: T_Data) -> bool:
    if a is None and b is None:
        return True
    if a is None or b is None:
        return False
    # bool is an int subclass in Python, keep it apart from numbers
    if isinstance(a, BooleanData) or isinstance(b, BooleanData):
        return type(a) is type(b) and a == b
    if isinstance(a, NumberData) and isinstance(b, NumberData):
        return a == b
    if isinstance(a, StringData) and isinstance(b, StringData):
        return a == b
    return a is b


def stringify(value: T_Data) -> str:
    if isinstance(value, SetData):
        return stringify_set(value)
    if value is None:
        return 'nil'
    if isinstance(value, BooleanData):
        return 'true' if value else 'false'
    if isinstance(value, NumberData):
        if math.isnan(value):
            return 'NaN'
        if math.isinf(value):
            return 'Infinity' if value > 0 else '-Infinity'
        text = repr(value)
        if text.endswith('.0'):
            text = text[:-2]
        return text
    return str(value)


def stringify_set(value: SetData) -> str:
    pieces = list()
    # (set, position of the next item); ids of the sets currently open, for self-containing sets
    stack = [(value, 0)]
    open_sets = {id(value)}
    while stack:
        items, position = stack.pop()
        if position == 0:
            pieces.append('[')
        if position == len(items):
            pieces.append(']')
            open_sets.discard(id(items))
            continue
        if position > 0:
            pieces.append(', ')
        stack.append((items, position + 1))
        item = items[position]
        if isinstance(item, SetData):
            if id(item) in open_sets:
                pieces.append('[...]')
            else:
                open_sets.add(id(item))
                stack.append((item, 0))
        elif isinstance(item, StringData):
            pieces.append(f'"{item}"')
        else:
            pieces.append(stringify(item))
    return ''.join(pieces)


def acacia_type(value: T_Data) -> StringData:
    if value is None:
        return 'nil'
    elif isinstance(value, BooleanData):
        return 'boolean'
    elif isinstance(value, StringData):
        return 'string'
    elif isinstance(value, NumberData):
        return 'number'
    elif isinstance(value, SetData):
        return 'set'
    elif isinstance(value, AcaciaInstance):
        return 'instance'
    elif isinstance(value, AcaciaClass):
        return 'class'
    elif isinstance(value, AcaciaCallable):
        return 'function'
    raise TypeError(f'Unknown type {type(value)}')


def weight(value: T_Data) -> float:
    """Ordering key used by set.sort(); callables and instances have no weight."""
    if value is None:
        return -999999999.0
    if isinstance(value, BooleanData):
        return 1.0 if value else 0.0
    if isinstance(value, NumberData):
        return value
    if isinstance(value, StringData):
        return float(ord(value[0])) if value else 0.0
    if isinstance(value, SetData):
        return float(len(value))
    return 0.0


def call_native(name: str, func: Callable, interpreter: 'Interpreter', location: Token, *arguments) -> T_Data:
    try:
        return func(interpreter, location, *arguments)
    except AcaciaRuntimeError:
        raise
    except Exception as e:
        raise AcaciaRuntimeError(location, f"Native function '{name}' raised {e!r}.", ErrorCode.NATIVE_ERROR)
