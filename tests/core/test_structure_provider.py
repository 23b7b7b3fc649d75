import textwrap

import pytest

from impact_flow.core.errors import StructureProviderError
from impact_flow.core.models import ComponentInfo
from impact_flow.core.structure_provider import (
    PythonStructureProvider,
    StaticStructureProvider,
    YamlStructureProvider,
)
from impact_flow.core.treesitter.python_adapter import ClassDeclaration


def _write_source(root, relative, code):
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(code), encoding="utf-8")
    return path


@pytest.fixture
def shop_project(tmp_path):
    root = tmp_path / "shop"
    _write_source(root, "models/base.py", """
        class Base:
            pass
    """)
    _write_source(root, "models/money.py", """
        class Money:
            def __init__(self, amount):
                self.amount = amount
    """)
    _write_source(root, "models/order.py", """
        from models.base import Base
        from models.money import Money


        class Order(Base):
            def total(self):
                return Money(0)
    """)
    _write_source(root, "services/order_service.py", """
        class OrderService:
            def place(self):
                return Order()
    """)
    return root


@pytest.mark.asyncio
async def test_static_provider_returns_copies():
    snapshot = [ComponentInfo("A", ["B"])]
    provider = StaticStructureProvider(snapshot)

    listed = await provider.list_components()
    listed[0].dependencies.append("C")

    assert snapshot[0].dependencies == ["B"]


@pytest.mark.asyncio
async def test_yaml_provider_reads_snapshot(write_yaml):
    path = write_yaml("components.yaml", {"components": [
        {"name": "OrderService", "dependencies": ["PaymentGateway"]},
        {"name": "PaymentGateway"},
    ]})

    components = await YamlStructureProvider(path).list_components()

    assert components == [ComponentInfo("OrderService", ["PaymentGateway"]), ComponentInfo("PaymentGateway", [])]


@pytest.mark.asyncio
async def test_yaml_provider_accepts_bare_list(write_yaml):
    path = write_yaml("components.yaml", [{"name": "A", "dependencies": ["B"]}])

    components = await YamlStructureProvider(path).list_components()

    assert [c.name for c in components] == ["A"]


@pytest.mark.asyncio
async def test_yaml_provider_missing_file(tmp_path):
    with pytest.raises(StructureProviderError):
        await YamlStructureProvider(tmp_path / "missing.yaml").list_components()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "data",
    [
        {"components": [{"dependencies": ["B"]}]},
        {"components": [{"name": "A", "dependencies": "B"}]},
        {"components": "A"},
    ],
)
async def test_yaml_provider_rejects_bad_entries(write_yaml, data):
    path = write_yaml("components.yaml", data)

    with pytest.raises(StructureProviderError):
        await YamlStructureProvider(path).list_components()


@pytest.mark.asyncio
async def test_python_provider_builds_class_dependencies(shop_project):
    components = await PythonStructureProvider(shop_project).list_components()

    assert [(c.name, c.dependencies) for c in components] == [
        ("Base", []),
        ("Money", []),
        ("Order", ["Base", "Money"]),
        ("OrderService", ["Order"]),
    ]
    order = next(c for c in components if c.name == "Order")
    assert order.file_path.endswith("order.py")


@pytest.mark.asyncio
async def test_python_provider_honours_gitignore_and_ignored_patterns(shop_project):
    (shop_project / ".gitignore").write_text("# generated\nbuild/\n", encoding="utf-8")
    _write_source(shop_project, "build/gen.py", """
        class Generated:
            pass
    """)
    _write_source(shop_project, "venv/lib.py", """
        class Vendored:
            pass
    """)

    components = await PythonStructureProvider(shop_project, ignored_patterns=["venv"]).list_components()

    names = [c.name for c in components]
    assert "Generated" not in names
    assert "Vendored" not in names
    assert "Order" in names


@pytest.mark.asyncio
async def test_python_provider_requires_directory(tmp_path):
    with pytest.raises(StructureProviderError):
        await PythonStructureProvider(tmp_path / "absent").list_components()


def test_build_components_merges_duplicate_classes():
    declarations = [
        ClassDeclaration("Handler", "a.py", 1, 3, bases=["object"], referenced_names={"Cache"}),
        ClassDeclaration("Handler", "b.py", 1, 5, bases=["Base"], referenced_names={"Handler", "Unknown"}),
        ClassDeclaration("Cache", "c.py", 1, 2),
        ClassDeclaration("Base", "d.py", 1, 2),
    ]

    components = PythonStructureProvider.build_components(declarations)

    assert [(c.name, c.dependencies) for c in components] == [
        ("Base", []),
        ("Cache", []),
        ("Handler", ["object", "Base", "Cache"]),
    ]
    assert components[2].file_path == "a.py"


@pytest.mark.asyncio
async def test_yaml_provider_undecodable_snapshot(tmp_path):
    path = tmp_path / "components.yaml"
    path.write_bytes(b"components:\n  - name: \xff\xfe\n")

    with pytest.raises(StructureProviderError, match="Unable to read component snapshot"):
        await YamlStructureProvider(path).list_components()
