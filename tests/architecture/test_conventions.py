"""
Convention tests that import-based layer rules cannot express: frozen
domain value objects, tuple-typed fields, no silent exception swallowing,
and port naming.
"""

import ast
import inspect
from pathlib import Path

SRC_ROOT = Path(__file__).parent.parent.parent / "src" / "atomforge"

# Owned and mutated under the Blackboard lock
MUTABLE_DATACLASS_ALLOWLIST = {"ProjectMetadata", "SolutionManifest"}

# Ports with an optional capability that has a default implementation
NON_ABSTRACT_PORT_METHODS = {"DecomposerInterface.repair_cycle"}


def _dataclasses(source: str) -> list[tuple[ast.ClassDef, bool]]:
    """Return (class node, is_frozen) for each @dataclass in source."""
    results = []
    for node in ast.walk(ast.parse(source)):
        if not isinstance(node, ast.ClassDef):
            continue
        for decorator in node.decorator_list:
            if isinstance(decorator, ast.Name) and decorator.id == "dataclass":
                results.append((node, False))
            elif (
                isinstance(decorator, ast.Call)
                and isinstance(decorator.func, ast.Name)
                and decorator.func.id == "dataclass"
            ):
                frozen = any(
                    kw.arg == "frozen"
                    and isinstance(kw.value, ast.Constant)
                    and kw.value.value is True
                    for kw in decorator.keywords
                )
                results.append((node, frozen))
    return results


class TestDomainDataclasses:
    def test_domain_models_are_frozen(self):
        source = (SRC_ROOT / "domain" / "models.py").read_text()

        violations = [
            node.name
            for node, frozen in _dataclasses(source)
            if not frozen and node.name not in MUTABLE_DATACLASS_ALLOWLIST
        ]

        assert not violations, f"Domain dataclasses must be frozen: {violations}"

    def test_frozen_fields_use_tuples(self):
        violations = []
        for py_file in (SRC_ROOT / "domain").glob("*.py"):
            source = py_file.read_text()
            for node, frozen in _dataclasses(source):
                if not frozen:
                    continue
                for item in node.body:
                    if isinstance(item, ast.AnnAssign):
                        annotation = ast.get_source_segment(source, item.annotation) or ""
                        if "list[" in annotation:
                            violations.append(f"{node.name}.{item.target.id}")

        assert not violations, f"Frozen dataclass fields should use tuple: {violations}"


class TestNoSilentExceptionSwallowing:
    def test_no_except_pass(self):
        violations = []
        for py_file in SRC_ROOT.rglob("*.py"):
            source = py_file.read_text()
            for node in ast.walk(ast.parse(source)):
                if not isinstance(node, ast.ExceptHandler) or len(node.body) != 1:
                    continue
                stmt = node.body[0]
                if isinstance(stmt, ast.Pass) or (
                    isinstance(stmt, ast.Expr)
                    and isinstance(stmt.value, ast.Constant)
                    and stmt.value.value is ...
                ):
                    violations.append(f"{py_file.name}:{node.lineno}")

        assert not violations, f"Silent exception swallowing found: {violations}"


class TestInterfaceConventions:
    def test_ports_end_with_interface(self):
        from atomforge.domain import interfaces

        abstract = [
            name
            for name, obj in inspect.getmembers(interfaces, inspect.isclass)
            if inspect.isabstract(obj)
        ]

        assert abstract
        assert all(name.endswith("Interface") for name in abstract)

    def test_port_methods_are_abstract(self):
        from atomforge.domain import interfaces

        violations = []
        for name, cls in inspect.getmembers(interfaces, inspect.isclass):
            if not inspect.isabstract(cls):
                continue
            for method_name, method in inspect.getmembers(cls, inspect.isfunction):
                qualified = f"{name}.{method_name}"
                if method_name.startswith("_") or qualified in NON_ABSTRACT_PORT_METHODS:
                    continue
                if not getattr(method, "__isabstractmethod__", False):
                    violations.append(qualified)

        assert not violations, f"Public port methods must be abstract: {violations}"

    def test_storage_backends_implement_port(self):
        from atomforge.domain.interfaces import ManifestStorageInterface
        from atomforge.infrastructure.persistence import (
            FilesystemManifestStorage,
            InMemoryManifestStorage,
        )

        for impl in (FilesystemManifestStorage, InMemoryManifestStorage):
            assert issubclass(impl, ManifestStorageInterface)
            assert not inspect.isabstract(impl), impl.__name__
