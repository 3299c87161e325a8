"""
Schema Model

Schema fields and their attributes, as resolved by loading. Inheritance and
imports are already flattened: concrete_fields() is the complete list.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..shared.tensor_type import TensorType


@dataclass
class Attribute:
    """Attribute (in-memory storage) declaration on a field."""
    name: str
    tensor: Optional[TensorType] = None

    def tensor_type(self) -> Optional[TensorType]:
        """Tensor type of the attribute, None for scalar attributes."""
        return self.tensor


@dataclass
class Field:
    """
    Schema field.

    A field may declare several attributes; the one named after the field is
    its own attribute, others are aliases.
    """
    name: str
    data_type: str
    attributes: Dict[str, Attribute] = field(default_factory=dict)

    def add_attribute(self, attribute: Attribute) -> Attribute:
        self.attributes[attribute.name] = attribute
        return attribute

    def attribute_named(self, name: str) -> Optional[Attribute]:
        return self.attributes.get(name)


@dataclass
class Schema:
    """Schema: document fields plus extra fields declared outside the document."""
    name: str
    document_fields: List[Field] = field(default_factory=list)
    extra_fields: List[Field] = field(default_factory=list)

    def concrete_fields(self) -> List[Field]:
        """All concrete fields, document fields first, in declaration order."""
        return list(self.document_fields) + list(self.extra_fields)

    def field_named(self, name: str) -> Optional[Field]:
        for f in self.concrete_fields():
            if f.name == name:
                return f
        return None
