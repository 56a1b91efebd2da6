"""
Layering rules, checked by parsing every source file.

Covers:
- Engines import nothing from the database, async runtime or outer layers
- Engines never read the wall clock or the environment
- Kernel and modules never import the layers above them
- The one sanctioned upward import (create_tables -> procurement ORM)
"""

import ast
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]


def _sources(package: str) -> list[Path]:
    return sorted((ROOT / package).rglob("*.py"))


def _tree(path: Path) -> ast.AST:
    return ast.parse(path.read_text(), filename=str(path))


def _imported_modules(path: Path) -> list[tuple[int, str]]:
    found = []
    for node in ast.walk(_tree(path)):
        if isinstance(node, ast.Import):
            found.extend((node.lineno, alias.name) for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and node.module:
            found.append((node.lineno, node.module))
    return found


def _under(module: str, prefix: str) -> bool:
    return module == prefix or module.startswith(prefix + ".")


LAYER_RULES = [
    pytest.param(
        "delivery_engines",
        ("sqlalchemy", "sqlite3", "asyncio", "yaml", "delivery_kernel.db",
         "delivery_config", "delivery_modules", "delivery_services"),
        id="engines-are-pure",
    ),
    pytest.param(
        "delivery_kernel",
        ("delivery_engines", "delivery_config", "delivery_modules", "delivery_services"),
        id="kernel-is-lowest",
    ),
    pytest.param(
        "delivery_modules",
        ("delivery_config", "delivery_services"),
        id="modules-below-services",
    ),
    pytest.param(
        "delivery_config",
        ("delivery_modules", "delivery_services", "sqlalchemy"),
        id="config-below-modules",
    ),
]

# (file, imported module) pairs allowed to break the rules above.
SANCTIONED = {
    ("delivery_kernel/db/engine.py", "delivery_modules.procurement"),
}


@pytest.mark.parametrize("package, forbidden", LAYER_RULES)
def test_layer_imports(package, forbidden):
    violations = []
    for path in _sources(package):
        relative = path.relative_to(ROOT).as_posix()
        for lineno, module in _imported_modules(path):
            if (relative, module) in SANCTIONED:
                continue
            if any(_under(module, prefix) for prefix in forbidden):
                violations.append(f"{relative}:{lineno} imports {module}")
    assert violations == []


def test_sanctioned_imports_still_exist():
    for relative, module in SANCTIONED:
        modules = [m for _, m in _imported_modules(ROOT / relative)]
        assert module in modules, f"{relative} no longer imports {module}"


IMPURE_REFERENCES = frozenset({
    "datetime.now",
    "datetime.utcnow",
    "date.today",
    "time.time",
    "os.environ",
    "os.getenv",
    "random.random",
})


def test_engines_have_no_impure_references():
    """time.monotonic (used by the tracer) is observational and allowed."""
    violations = []
    for path in _sources("delivery_engines"):
        for node in ast.walk(_tree(path)):
            if isinstance(node, ast.Attribute) and isinstance(node.value, ast.Name):
                reference = f"{node.value.id}.{node.attr}"
                if reference in IMPURE_REFERENCES:
                    violations.append(f"{path.name}:{node.lineno} uses {reference}")
    assert violations == []
