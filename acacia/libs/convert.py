from ..acacia_data import NativeFunction, T_Data, stringify, BooleanData, NumberData, StringData
from ..exceptions import AcaciaRuntimeError, ErrorCode
from ..lexer import Token

VALID_TYPES = ('boolean', 'bool', 'string', 'number', 'any')
TRUE_WORDS = ('t', 'true', 'yes', '1')
FALSE_WORDS = ('f', 'false', 'no', '0')


def check_target_type(location: Token, target: T_Data) -> str:
    target_type = stringify(target).lower()
    if target_type not in VALID_TYPES:
        raise AcaciaRuntimeError(location, f"'{target_type}' is not a valid type to convert to. "
                                           f"Must be: 'boolean', 'string', 'number' or 'any'.",
                                 ErrorCode.NATIVE_ERROR)
    return target_type


def parse_boolean(text: str):
    if text.lower() in TRUE_WORDS:
        return True
    if text.lower() in FALSE_WORDS:
        return False
    return None


def parse_number(text: str):
    try:
        return float(text)
    except ValueError:
        return None


def coerce_text(location: Token, text: str, target_type: str) -> T_Data:
    if target_type in ('boolean', 'bool'):
        value = parse_boolean(text)
        if value is None:
            raise AcaciaRuntimeError(location, f"Cannot convert '{text}' to boolean.", ErrorCode.NATIVE_ERROR)
        return value
    if target_type == 'number':
        value = parse_number(text)
        if value is None:
            raise AcaciaRuntimeError(location, f"Cannot convert '{text}' to number.", ErrorCode.NATIVE_ERROR)
        return value
    if target_type == 'string':
        return text
    # 'any': best effort, most specific type first
    value = parse_boolean(text)
    if value is not None:
        return value
    value = parse_number(text)
    if value is not None:
        return value
    return text


def native_convert(interpreter, location: Token, given: T_Data, target: T_Data) -> T_Data:
    """
    Unlike `input`, text is taken literally here: only 'true' and 'false' become booleans,
    and 'any' leaves a string as it is.
    """
    target_type = check_target_type(location, target)
    if target_type == 'string':
        return stringify(given)
    failure = AcaciaRuntimeError(location, f"Failed to convert '{stringify(given)}' to {target_type}",
                                 ErrorCode.NATIVE_ERROR)
    if isinstance(given, StringData):
        if target_type in ('boolean', 'bool'):
            if given.lower() == 'true':
                return True
            if given.lower() == 'false':
                return False
            raise failure
        if target_type == 'number':
            value = parse_number(given)
            if value is None:
                raise failure
            return value
        return given
    if isinstance(given, BooleanData):
        if target_type == 'number':
            return 1.0 if given else 0.0
        return given
    if isinstance(given, NumberData):
        if target_type in ('boolean', 'bool'):
            # NaN counts as true
            return not given <= 0
        return given
    raise failure


lib_table = {
    'convert': NativeFunction(name='convert', params_num=2, func=native_convert),
}
