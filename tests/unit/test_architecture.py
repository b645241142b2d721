"""
Architectural tests: enforce layer boundaries.

- extractors/ are pure: no adapters, tools, auth, HTTP or logging
- adapters/ must not depend on tools/
- the translator is pure too: no adapters, no logging
- tools/ wires everything together
"""

import ast
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).parent.parent.parent

# Layers and their forbidden imports
LAYER_RULES = {
    "extractors": {"adapters", "tools", "auth", "httpx", "logging_config"},
    "adapters": {"tools", "server"},
}


def get_imports_from_file(filepath: Path) -> set[str]:
    """Extract all top-level import names from a Python file."""
    tree = ast.parse(filepath.read_text(), filename=str(filepath))

    imports = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                imports.add(alias.name.split(".")[0])
        elif isinstance(node, ast.ImportFrom):
            if node.module and node.level == 0:
                imports.add(node.module.split(".")[0])

    return imports


class TestLayerBoundaries:
    """Verify that layer boundaries are respected."""

    @pytest.mark.parametrize("layer,forbidden", list(LAYER_RULES.items()))
    def test_layer_does_not_import_forbidden(self, layer: str, forbidden: set[str]) -> None:
        violations = []

        for filepath in (PROJECT_ROOT / layer).glob("*.py"):
            bad_imports = get_imports_from_file(filepath) & forbidden
            if bad_imports:
                violations.append(f"{filepath.name} imports {bad_imports}")

        assert not violations, (
            f"Layer '{layer}' has forbidden imports:\n" +
            "\n".join(f"  - {v}" for v in violations)
        )

    def test_translator_is_pure(self) -> None:
        imports = get_imports_from_file(PROJECT_ROOT / "tools" / "translate.py")
        assert not imports & {"adapters", "auth", "httpx", "logging", "logging_config"}

    def test_extractors_are_pure(self) -> None:
        """Extractors only import from stdlib, shared models and constants."""
        stdlib_modules = set(getattr(sys, "stdlib_module_names", set()))
        allowed = stdlib_modules | {"extractors", "models", "config"}

        violations = []
        for filepath in (PROJECT_ROOT / "extractors").glob("*.py"):
            non_stdlib = get_imports_from_file(filepath) - allowed
            if non_stdlib:
                violations.append(f"{filepath.name} imports non-stdlib: {non_stdlib}")

        assert not violations, (
            "Extractors must be pure (stdlib only):\n" +
            "\n".join(f"  - {v}" for v in violations)
        )


class TestPackageStructure:
    """Verify expected package structure exists."""

    @pytest.mark.parametrize("package", ["extractors", "adapters", "tools"])
    def test_package_has_init(self, package: str) -> None:
        assert (PROJECT_ROOT / package / "__init__.py").exists(), f"{package}/__init__.py missing"

    def test_fixtures_is_not_package(self) -> None:
        """fixtures/ is a data directory, not a Python package."""
        assert not (PROJECT_ROOT / "fixtures" / "__init__.py").exists()
