"""
Global test configuration and fixtures
"""

import shutil

import pytest

from changed_pkgs.models.package import ExternalModule, Package
from changed_pkgs.services.dependency_resolver import PackageGraph


def _make_package(path, files=(), imports=(), module=None):
    return Package(
        path=path,
        files=frozenset(files),
        imports={pkg.path: pkg for pkg in imports},
        module=module,
    )


@pytest.fixture
def make_package():
    """Factory for Package values: make_package(path, files, imports, module)"""
    return _make_package


@pytest.fixture
def chain_graph():
    """pkgC imports pkgB imports pkgA, listed leaves first"""
    pkg_a = _make_package("example.com/m/pkgA", files=["pkgA/a.go"])
    pkg_b = _make_package("example.com/m/pkgB", files=["pkgB/b.go"], imports=[pkg_a])
    pkg_c = _make_package("example.com/m/pkgC", files=["pkgC/c.go"], imports=[pkg_b])
    return PackageGraph([pkg_a, pkg_b, pkg_c])


@pytest.fixture
def module_graph():
    """
    The standard end-to-end layout:

      pkgA            no dependents
      pkgB -> dep/lib (third-party, backed by example.com/dep)
      pkgC -> pkgB
    """
    dep_lib = _make_package(
        "example.com/dep/lib",
        files=["/gomodcache/example.com/dep@v1.0.0/lib/lib.go"],
        module=ExternalModule("example.com/dep", "v1.0.0"),
    )
    pkg_a = _make_package("example.com/m/pkgA", files=["pkgA/file.go"])
    pkg_b = _make_package("example.com/m/pkgB", files=["pkgB/b.go"], imports=[dep_lib])
    pkg_c = _make_package("example.com/m/pkgC", files=["pkgC/c.go"], imports=[pkg_b])
    return PackageGraph([pkg_a, pkg_b, pkg_c])


@pytest.fixture
def requires_git():
    if shutil.which("git") is None:
        pytest.skip("git is not installed")


# Pytest hooks
def pytest_collection_modifyitems(config, items):
    """Mark tests by directory"""
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
