"""
Tensor Types

A tensor type is a value type plus a set of named dimensions. Dimensions are
either indexed (dense, optionally bound to a size) or mapped (sparse, keyed
by label). The canonical string form orders dimensions by name and omits the
default value type:

    tensor(x[128])
    tensor<float>(a{},b[3])
    tensor<int8>(x[])
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from ..utils.config import TENSOR_TYPE_KEYWORD


class TensorValueType(Enum):
    """Cell value type of a tensor."""
    DOUBLE = "double"
    FLOAT = "float"
    BFLOAT16 = "bfloat16"
    INT8 = "int8"


class DimensionKind(Enum):
    INDEXED = "indexed"
    MAPPED = "mapped"


@dataclass(frozen=True)
class Dimension:
    """
    One tensor dimension.

    size is only meaningful for indexed dimensions; None means unbound (x[]).
    """
    name: str
    kind: DimensionKind
    size: Optional[int] = None

    @classmethod
    def indexed(cls, name: str, size: Optional[int] = None) -> 'Dimension':
        return cls(name, DimensionKind.INDEXED, size)

    @classmethod
    def mapped(cls, name: str) -> 'Dimension':
        return cls(name, DimensionKind.MAPPED)

    def is_indexed(self) -> bool:
        return self.kind is DimensionKind.INDEXED

    def __str__(self) -> str:
        if self.kind is DimensionKind.MAPPED:
            return f"{self.name}{{}}"
        return f"{self.name}[{'' if self.size is None else self.size}]"


@dataclass(frozen=True)
class TensorType:
    """
    Tensor type descriptor.

    Dimensions are stored sorted by name so that equal types compare equal
    regardless of declaration order.
    """
    value_type: TensorValueType
    dimensions: Tuple[Dimension, ...]

    def __init__(self, dimensions=(), value_type: TensorValueType = TensorValueType.DOUBLE):
        object.__setattr__(self, 'value_type', value_type)
        object.__setattr__(self, 'dimensions', tuple(sorted(dimensions, key=lambda d: d.name)))

    @property
    def rank(self) -> int:
        return len(self.dimensions)

    def dimension(self, name: str) -> Optional[Dimension]:
        for dim in self.dimensions:
            if dim.name == name:
                return dim
        return None

    def __str__(self) -> str:
        value = "" if self.value_type is TensorValueType.DOUBLE else f"<{self.value_type.value}>"
        dims = ",".join(str(d) for d in self.dimensions)
        return f"{TENSOR_TYPE_KEYWORD}{value}({dims})"

    def __repr__(self) -> str:
        return f"TensorType({str(self)!r})"
