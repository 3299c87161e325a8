"""
Shared components: diagnostics, source locations and tensor types.
"""

from .source_location import SourceLocation
from .errors import (
    Error, ErrorReporter, SchemacError, SchemacSourceError, SchemacImplementationError,
)
from .tensor_type import TensorType, TensorValueType, Dimension, DimensionKind
