"""
Bind parameter typing and return-mode definitions.

Every value passed to `QueryExecutor.execute` travels through the bind step.
Each value carries one of four bind tags, either supplied explicitly with
`BindParam` or inferred from the value's runtime type:

    integral    -> BindType.INT     ('i')
    real        -> BindType.DOUBLE  ('d')
    str         -> BindType.STRING  ('s')
    anything    -> BindType.BLOB    ('b')

Values are coerced to their tag before they reach the driver. Missing values
(None, NaN, pandas NA/NaT) are always sent as SQL NULL.
"""
import logging
import math
import numbers
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

import pandas as pd
from dbwrap.exceptions import InvalidReturnMode, TypeConversionError

logger = logging.getLogger(__name__)

__all__ = [
    'BindType',
    'BindParam',
    'ReturnMode',
    'infer_bind_type',
    'bind_signature',
    'bind_parameters',
    'is_empty',
]


class BindType(Enum):
    """Bind tag for a single positional parameter."""
    INT = 'i'
    DOUBLE = 'd'
    STRING = 's'
    BLOB = 'b'


class ReturnMode(str, Enum):
    """Shape of the value returned by `QueryExecutor.execute`."""
    RESULT = 'result'
    ID = 'id'

    @classmethod
    def parse(cls, value: 'ReturnMode | str') -> 'ReturnMode':
        """Resolve a caller-supplied mode, rejecting anything unrecognized.

        >>> ReturnMode.parse('id')
        <ReturnMode.ID: 'id'>
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError as exc:
            legal = ' or '.join(f"'{m.value}'" for m in cls)
            raise InvalidReturnMode(
                f'Invalid return type {value!r} specified for execute. '
                f'Valid options are {legal}.') from exc


@dataclass(frozen=True, slots=True)
class BindParam:
    """A parameter value with an explicit bind tag.

    Use this when the inferred tag is not the one the column needs, e.g.
    sending a numeric string as text or raw bytes as a blob.
    """
    value: Any
    type: BindType

    def __post_init__(self):
        if not isinstance(self.type, BindType):
            object.__setattr__(self, 'type', BindType(self.type))


def is_missing(value: Any) -> bool:
    """Check for values that must be bound as SQL NULL."""
    if value is None:
        return True
    if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
        return True
    if isinstance(value, (str, bytes, bytearray, memoryview)):
        return False
    try:
        return bool(pd.api.types.is_scalar(value) and pd.isna(value))
    except (TypeError, ValueError):
        return False


def is_empty(value: Any) -> bool:
    """Truthiness as PHP's ``empty()`` sees it.

    None, False, 0, 0.0, '', '0' and empty containers are empty.

    >>> [is_empty(v) for v in (None, 0, '', '0', False, 'a', 1, '0.0')]
    [True, True, True, True, True, False, False, False]
    """
    if value is None:
        return True
    if isinstance(value, str):
        return value in {'', '0'}
    if isinstance(value, (bytes, bytearray)):
        return value in {b'', b'0'}
    if isinstance(value, (bool, numbers.Number)):
        return not value
    if isinstance(value, (Sequence, dict, set, frozenset)):
        return len(value) == 0
    return False


def infer_bind_type(value: Any) -> BindType:
    """Infer the bind tag from a value's runtime type.

    NumPy scalars register with the `numbers` ABCs, so they are tagged like
    the builtin types they wrap.

    >>> infer_bind_type(1), infer_bind_type(1.5), infer_bind_type('x')
    (<BindType.INT: 'i'>, <BindType.DOUBLE: 'd'>, <BindType.STRING: 's'>)
    >>> infer_bind_type(b'x')
    <BindType.BLOB: 'b'>
    """
    if isinstance(value, BindParam):
        return value.type
    if isinstance(value, numbers.Integral):
        return BindType.INT
    if isinstance(value, numbers.Real):
        return BindType.DOUBLE
    if isinstance(value, str):
        return BindType.STRING
    return BindType.BLOB


def bind_signature(params: Iterable[Any]) -> str:
    """Return the type signature string, one character per parameter.

    >>> bind_signature([1, 2.0, 'three', None])
    'idsb'
    """
    return ''.join(infer_bind_type(p).value for p in params)


def coerce_value(value: Any, bind_type: BindType) -> Any:
    """Convert a value to the Python type its bind tag travels as."""
    if is_missing(value):
        return None
    try:
        if bind_type is BindType.INT:
            return int(value)
        if bind_type is BindType.DOUBLE:
            return float(value)
        if bind_type is BindType.STRING:
            if isinstance(value, (bytes, bytearray, memoryview)):
                return bytes(value).decode()
            return str(value)
    except (TypeError, ValueError, UnicodeDecodeError) as exc:
        raise TypeConversionError(
            f'Cannot bind {value!r} as {bind_type.name.lower()}: {exc}') from exc
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    return value


def bind_parameters(params: Sequence[Any]) -> tuple[str, tuple]:
    """Infer the signature and coerce every value for positional binding.

    Returns the signature string and the tuple handed to the driver.

    >>> bind_parameters([1, BindParam(2, BindType.STRING)])
    ('is', (1, '2'))
    """
    signature = []
    values = []
    for param in params:
        bind_type = infer_bind_type(param)
        raw = param.value if isinstance(param, BindParam) else param
        signature.append(bind_type.value)
        values.append(coerce_value(raw, bind_type))
    return ''.join(signature), tuple(values)


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
