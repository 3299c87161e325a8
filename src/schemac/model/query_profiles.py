"""
Query Profile Types

A query-profile type declares the typed parameters a query may carry. Field
types form a closed variant tagged by FieldTypeKind:

- TensorFieldType: a tensor parameter, with or without a concrete tensor type
- PrimitiveFieldType: anything else (string, integer, query profile reference, ...)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from ..shared.tensor_type import TensorType
from ..shared.errors import SchemacImplementationError


class FieldTypeKind(Enum):
    TENSOR = "tensor"
    PRIMITIVE = "primitive"


@dataclass(frozen=True)
class FieldType:
    """Query-profile field type; dispatch on kind, not on the Python class."""
    kind: FieldTypeKind


@dataclass(frozen=True)
class TensorFieldType(FieldType):
    """Tensor field type. tensor_type is None for a type-less `tensor` declaration."""
    tensor_type: Optional[TensorType]

    def __init__(self, tensor_type: Optional[TensorType] = None):
        super().__init__(kind=FieldTypeKind.TENSOR)
        object.__setattr__(self, 'tensor_type', tensor_type)

    def __str__(self) -> str:
        return str(self.tensor_type) if self.tensor_type is not None else "tensor"


@dataclass(frozen=True)
class PrimitiveFieldType(FieldType):
    name: str

    def __init__(self, name: str):
        super().__init__(kind=FieldTypeKind.PRIMITIVE)
        object.__setattr__(self, 'name', name)

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class FieldDescription:
    name: str
    type: FieldType


class QueryProfileType:
    """A named, ordered collection of field descriptions."""

    def __init__(self, id: str):
        self.id = id
        self._fields: Dict[str, FieldDescription] = {}

    def add_field(self, description: FieldDescription) -> FieldDescription:
        self._fields[description.name] = description
        return description

    def fields(self) -> Dict[str, FieldDescription]:
        """Field name -> description, in declaration order."""
        return dict(self._fields)

    def __repr__(self) -> str:
        return f"QueryProfileType({self.id!r}, fields={list(self._fields)})"


class QueryProfileTypeRegistry:
    """All query-profile types known to the application."""

    def __init__(self):
        self._types: Dict[str, QueryProfileType] = {}

    def register(self, query_profile_type: QueryProfileType) -> QueryProfileType:
        if query_profile_type.id in self._types:
            raise SchemacImplementationError(
                f"query profile type '{query_profile_type.id}' is already registered"
            )
        self._types[query_profile_type.id] = query_profile_type
        return query_profile_type

    def get(self, id: str) -> Optional[QueryProfileType]:
        return self._types.get(id)

    def all_types(self) -> List[QueryProfileType]:
        return list(self._types.values())

    def __contains__(self, id: str) -> bool:
        return id in self._types

    def __len__(self) -> int:
        return len(self._types)
