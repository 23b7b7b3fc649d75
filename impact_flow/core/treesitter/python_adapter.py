"""
Tree-sitter adapter for Python source.

Produces ClassDeclaration records: the class name, the bases it lists and
every identifier its body mentions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Set, Tuple

from tree_sitter import Node, Tree


@dataclass
class ClassDeclaration:
    name: str
    file_path: str
    line_start: int
    line_end: int
    bases: List[str] = field(default_factory=list)
    referenced_names: Set[str] = field(default_factory=set)


def extract_classes(tree: Tree, source: str, file_path: str) -> List[ClassDeclaration]:
    source_bytes = source.encode("utf-8")
    classes: List[ClassDeclaration] = []
    for node in _walk(tree.root_node):
        if node.type == "class_definition":
            classes.append(_build_class(node, source_bytes, file_path))
    return classes


def _build_class(node: Node, source: bytes, file_path: str) -> ClassDeclaration:
    name_node = node.child_by_field_name("name")
    name = _node_text(source, name_node) if name_node else "<anonymous>"
    start_line, end_line = _line_span(node)
    return ClassDeclaration(
        name=name,
        file_path=file_path,
        line_start=start_line,
        line_end=end_line,
        bases=_extract_bases(node, source),
        referenced_names=_extract_referenced_names(node, source) - {name},
    )


def _extract_bases(node: Node, source: bytes) -> List[str]:
    bases_node = node.child_by_field_name("superclasses")
    if not bases_node:
        return []
    bases: List[str] = []
    for child in bases_node.children:
        if child.type == "identifier":
            bases.append(_node_text(source, child))
        elif child.type == "attribute":
            # module.Base -> Base
            attr = child.child_by_field_name("attribute")
            if attr:
                bases.append(_node_text(source, attr))
        # keyword arguments such as metaclass=... are not bases
    return bases


def _extract_referenced_names(node: Node, source: bytes) -> Set[str]:
    body = node.child_by_field_name("body")
    if not body:
        return set()
    names: Set[str] = set()
    for child in _walk(body):
        if child.type == "identifier":
            names.add(_node_text(source, child))
    return names


def _line_span(node: Node) -> Tuple[int, int]:
    return node.start_point[0] + 1, node.end_point[0] + 1


def _node_text(source: bytes, node: Optional[Node]) -> str:
    if not node:
        return ""
    return source[node.start_byte:node.end_byte].decode("utf-8")


def _walk(node: Node) -> Iterator[Node]:
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))
