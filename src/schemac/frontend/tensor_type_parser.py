"""
Tensor Type Parser

Parses tensor type declarations such as `tensor<float>(x[10],y{})` into
TensorType descriptors, using the lark grammar in tensor_type.lark.
"""

from pathlib import Path
from typing import List, Optional, Tuple
import logging

from lark import Lark, Transformer, Token
from lark.exceptions import UnexpectedCharacters, UnexpectedInput, UnexpectedToken

from ..shared.errors import SchemacError
from ..shared.tensor_type import Dimension, TensorType, TensorValueType
from ..utils.config import DEFAULT_PARSER_CACHE_FILE

logger = logging.getLogger("schemac.frontend.tensor_type_parser")


class TensorTypeParseError(SchemacError):
    """Invalid tensor type; column is 1-based within the type text."""
    def __init__(self, message: str, text: str, column: int):
        super().__init__(message)
        self.text = text
        self.column = column

    def __str__(self):
        return f"{self.message} at column {self.column} in '{self.text}'"


class TensorTypeTransformer(Transformer):
    """Tree -> (value type, [(name token, Dimension)])"""

    def value_type(self, children):
        return TensorValueType(str(children[0]))

    def indexed_dimension(self, children):
        name = children[0]
        size = int(children[1]) if len(children) > 1 else None
        return name, Dimension.indexed(str(name), size)

    def mapped_dimension(self, children):
        name = children[0]
        return name, Dimension.mapped(str(name))

    def start(self, children):
        value_type = TensorValueType.DOUBLE
        dimensions: List[Tuple[Token, Dimension]] = []
        for child in children:
            if isinstance(child, TensorValueType):
                value_type = child
            else:
                dimensions.append(child)
        return value_type, dimensions


class TensorTypeParser:
    """
    Tensor type parser.

    Syntax errors and semantic errors (duplicate dimension names, zero-size
    indexed dimensions) raise TensorTypeParseError.
    """

    def __init__(self, cache_file: Optional[str] = DEFAULT_PARSER_CACHE_FILE):
        grammar_path = Path(__file__).parent / "tensor_type.lark"
        self.parser = Lark.open(
            str(grammar_path),
            parser='lalr',              # Required for caching
            cache=cache_file,
            propagate_positions=True,
            maybe_placeholders=False,
        )
        self.transformer = TensorTypeTransformer()

    def parse(self, text: str) -> TensorType:
        try:
            tree = self.parser.parse(text)
        except UnexpectedInput as e:
            raise self._syntax_error(text, e) from e

        value_type, dimensions = self.transformer.transform(tree)

        seen = set()
        for token, dim in dimensions:
            if dim.name in seen:
                raise TensorTypeParseError(f"duplicate dimension '{dim.name}'", text, token.column)
            seen.add(dim.name)
            if dim.is_indexed() and dim.size == 0:
                raise TensorTypeParseError(
                    f"indexed dimension '{dim.name}' must have a positive size", text, token.column
                )

        tensor_type = TensorType([dim for _, dim in dimensions], value_type)
        logger.debug(f"Parsed tensor type '{text}' as {tensor_type}")
        return tensor_type

    @staticmethod
    def _syntax_error(text: str, e: UnexpectedInput) -> TensorTypeParseError:
        if isinstance(e, UnexpectedToken) and e.token.type == '$END':
            return TensorTypeParseError("unexpected end of tensor type", text, len(text) + 1)
        column = e.column if isinstance(e.column, int) and e.column > 0 else len(text) + 1
        if isinstance(e, UnexpectedCharacters):
            return TensorTypeParseError(f"unexpected character {text[column - 1]!r}", text, column)
        if isinstance(e, UnexpectedToken):
            return TensorTypeParseError(f"unexpected '{e.token}'", text, column)
        return TensorTypeParseError("invalid tensor type", text, column)


def looks_like_tensor_type(text: str) -> bool:
    """True for declarations that must be parsed as tensor types."""
    return text.strip().startswith("tensor")
