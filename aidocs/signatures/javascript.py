"""Tree-sitter powered extraction of top-level JavaScript function declarations."""

from __future__ import annotations

from typing import Iterable, List, Optional

import tree_sitter_javascript
from tree_sitter import Language, Node, Parser

from ..errors import ParseFailure
from ..models import FunctionSignature
from .base import SignatureExtractor

_DECLARATION_TYPES = {"function_declaration", "generator_function_declaration"}

JS_LANGUAGE = Language(tree_sitter_javascript.language())


class JavaScriptSignatureExtractor(SignatureExtractor):
    """Extracts direct top-level function declarations from a script or module.

    Exported declarations (``export function f``) count as top-level.
    Function expressions, arrow functions, class methods and
    nested functions are not extracted.
    """

    dialect = "javascript"

    def __init__(self) -> None:
        self._parser = Parser(JS_LANGUAGE)

    def extract(self, source: str, *, library: str = "<source>") -> List[FunctionSignature]:
        if not source.strip():
            return []
        source_bytes = source.encode("utf-8")
        tree = self._parser.parse(source_bytes)
        root = tree.root_node
        if root.has_error:
            raise ParseFailure(library, _describe_error(root))

        offsets = _OffsetMap(source)
        signatures: List[FunctionSignature] = []
        for node in self._top_level_declarations(root):
            name_node = node.child_by_field_name("name")
            if name_node is None:
                continue
            parameters = node.child_by_field_name("parameters")
            signatures.append(
                FunctionSignature(
                    name=_node_text(name_node, source_bytes),
                    params=list(self._parameter_names(parameters, source_bytes)),
                    start=offsets.char_offset(node.start_byte),
                    end=offsets.char_offset(node.end_byte),
                )
            )
        return signatures

    @staticmethod
    def _top_level_declarations(root: Node) -> Iterable[Node]:
        for child in root.children:
            if child.type in _DECLARATION_TYPES:
                yield child
            elif child.type == "export_statement":
                declaration = child.child_by_field_name("declaration")
                if declaration is not None and declaration.type in _DECLARATION_TYPES:
                    yield declaration

    @staticmethod
    def _parameter_names(parameters: Optional[Node], source_bytes: bytes) -> Iterable[str]:
        if parameters is None:
            return
        for param in parameters.named_children:
            if param.type == "comment":
                continue
            if param.type == "assignment_pattern":
                left = param.child_by_field_name("left")
                yield _node_text(left if left is not None else param, source_bytes)
            else:
                # identifiers, rest and destructuring patterns keep their source text
                yield " ".join(_node_text(param, source_bytes).split())


class _OffsetMap:
    """Converts tree-sitter byte offsets to character offsets.

    Non-ASCII sources get a byte-to-character table built once per parse.
    """

    def __init__(self, source: str) -> None:
        self._table: Optional[List[int]] = None
        if not source.isascii():
            table: List[int] = []
            for index, char in enumerate(source):
                table.extend([index] * len(char.encode("utf-8")))
            table.append(len(source))
            self._table = table

    def char_offset(self, byte_offset: int) -> int:
        if self._table is None:
            return byte_offset
        return self._table[byte_offset]


def _node_text(node: Node, source_bytes: bytes) -> str:
    return source_bytes[node.start_byte : node.end_byte].decode("utf-8", errors="ignore")


def _describe_error(root: Node) -> str:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            line, column = node.start_point
            return f"syntax error near line {line + 1}, column {column + 1}"
        stack.extend(reversed(node.children))
    return "source could not be parsed"


__all__ = ["JS_LANGUAGE", "JavaScriptSignatureExtractor"]
