"""
Code structure providers: where the dependency graph's topology comes from.

The analyzer only needs ``await provider.list_components()``; these classes
supply that from memory, from a YAML snapshot, or by scanning Python sources.
"""

import asyncio
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol, Union

import yaml

from impact_flow.core.errors import StructureProviderError
from impact_flow.core.models import ComponentInfo
from impact_flow.core.treesitter.languages import get_py_parser
from impact_flow.core.treesitter.python_adapter import ClassDeclaration, extract_classes
from impact_flow.core.utils import get_gitignore_patterns, is_ignored, read_gitignore

logger = logging.getLogger(__name__)


class CodeStructureProvider(Protocol):
    async def list_components(self) -> List[ComponentInfo]:
        ...


class StaticStructureProvider:
    """Serves a fixed, in-memory component list."""

    def __init__(self, components: Iterable[ComponentInfo]):
        self.components = list(components)

    async def list_components(self) -> List[ComponentInfo]:
        return [ComponentInfo(c.name, list(c.dependencies), c.file_path) for c in self.components]


class YamlStructureProvider:
    """
    Reads a component snapshot such as::

        components:
          - name: OrderService
            dependencies: [PaymentGateway, Inventory]
    """

    def __init__(self, snapshot_path: Union[str, Path]):
        self.snapshot_path = Path(snapshot_path)

    async def list_components(self) -> List[ComponentInfo]:
        try:
            content = await asyncio.to_thread(self.snapshot_path.read_text, encoding="utf-8")
            data = yaml.safe_load(content)
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            raise StructureProviderError(f"Unable to read component snapshot {self.snapshot_path}: {e}") from e

        entries = data.get("components") if isinstance(data, dict) else data
        if entries is None:
            entries = []
        if not isinstance(entries, list):
            raise StructureProviderError(f"Component snapshot {self.snapshot_path} must contain a list of components")

        components: List[ComponentInfo] = []
        for position, entry in enumerate(entries):
            if not isinstance(entry, dict) or not entry.get("name"):
                raise StructureProviderError(
                    f"Component #{position} in {self.snapshot_path} must be a mapping with a name"
                )
            dependencies = entry.get("dependencies") or []
            if not isinstance(dependencies, list):
                raise StructureProviderError(f"Dependencies of {entry['name']} must be a list")
            components.append(ComponentInfo(str(entry["name"]), [str(d) for d in dependencies]))

        logger.info(f"Loaded {len(components)} components from {self.snapshot_path}")
        return components


class PythonStructureProvider:
    """
    Scans ``*.py`` files with tree-sitter and reports one component per class.

    A class depends on the bases it lists and on every other scanned class
    whose name appears in its body.
    """

    def __init__(self, root_directory: Union[str, Path], ignored_patterns: Optional[Iterable[str]] = None):
        self.root_directory = Path(root_directory).resolve()
        self.ignored_patterns = list(ignored_patterns or [])

    async def list_components(self) -> List[ComponentInfo]:
        if not self.root_directory.is_dir():
            raise StructureProviderError(f"{self.root_directory} is not a directory")
        declarations = await asyncio.to_thread(self._scan)
        return self.build_components(declarations)

    def _scan(self) -> List[ClassDeclaration]:
        gitignore_patterns = get_gitignore_patterns(self.root_directory)
        for nested in self.root_directory.rglob(".gitignore"):
            if nested.parent != self.root_directory:
                gitignore_patterns.extend(read_gitignore(nested))

        files = sorted(
            path for path in self.root_directory.rglob("*.py")
            if not is_ignored(path, self.root_directory, self.ignored_patterns, gitignore_patterns)
        )
        logger.info(f"Found {len(files)} Python files to analyze under {self.root_directory}")

        parser = get_py_parser()
        declarations: List[ClassDeclaration] = []
        for file_path in files:
            try:
                source = file_path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Skipping unreadable file {file_path}: {e}")
                continue
            tree = parser.parse(source.encode("utf-8"))
            declarations.extend(extract_classes(tree, source, str(file_path)))
        return declarations

    @staticmethod
    def build_components(declarations: Iterable[ClassDeclaration]) -> List[ComponentInfo]:
        """Merge declarations by class name and resolve dependencies."""
        by_name: Dict[str, List[ClassDeclaration]] = {}
        for decl in declarations:
            by_name.setdefault(decl.name, []).append(decl)
        known = set(by_name)

        components: List[ComponentInfo] = []
        for name in sorted(by_name):
            decls = by_name[name]
            dependencies: Dict[str, None] = {}
            for decl in decls:
                for base in decl.bases:
                    if base != name:
                        dependencies.setdefault(base, None)
            for decl in decls:
                for referenced in sorted(decl.referenced_names & known):
                    if referenced != name:
                        dependencies.setdefault(referenced, None)
            components.append(ComponentInfo(name, list(dependencies), decls[0].file_path))
        return components
