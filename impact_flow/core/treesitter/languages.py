"""
Tree-sitter language loaders.
"""

from functools import lru_cache

from tree_sitter import Language, Parser

from tree_sitter_python import language as py_language


@lru_cache(maxsize=1)
def get_py_language() -> Language:
    return Language(py_language())


def get_py_parser() -> Parser:
    # Parsers hold parse state, so each caller gets its own.
    return Parser(get_py_language())
