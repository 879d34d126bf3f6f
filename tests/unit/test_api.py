"""
HTTP API tests
"""

import pytest
from fastapi.testclient import TestClient

import main
from changed_pkgs.errors import PackageLoadError
from changed_pkgs.models.change_set import ChangeSet
from changed_pkgs.models.impact_node import ImpactNode, ImpactReason


class StubAnalyzer:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def get_changed_packages(self, mod_dir, from_ref, to_ref):
        self.calls.append((mod_dir, from_ref, to_ref))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def client():
    return TestClient(main.app)


@pytest.fixture
def install_analyzer(monkeypatch):
    built = []

    def install(analyzer):
        def from_settings(settings=None, repo_dir=None):
            built.append(repo_dir)
            return analyzer

        monkeypatch.setattr(main.ChangedPackagesAnalyzer, "from_settings", staticmethod(from_settings))
        return built

    return install


class TestApi:
    """Endpoints"""

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "message" in response.json()

    def test_changed_packages(self, client, install_analyzer):
        analyzer = StubAnalyzer(ChangeSet(
            packages=frozenset({"example.com/m/b", "example.com/m/a"}),
            modules=frozenset({"example.com/dep"}),
            reasons={
                "example.com/m/a": ImpactNode("example.com/m/a", ImpactReason.MODULE, "example.com/dep"),
                "example.com/m/b": ImpactNode("example.com/m/b", ImpactReason.PACKAGE, "example.com/m/a"),
            },
        ))
        built = install_analyzer(analyzer)

        response = client.post(
            "/changed-packages",
            json={"from_ref": "main", "to_ref": "HEAD", "repo_dir": "/src", "mod_dir": "/src/mod"},
        )

        assert response.status_code == 200
        assert response.json() == {
            "packages": [
                {"package": "example.com/m/a", "reason": "module", "source": "example.com/dep"},
                {"package": "example.com/m/b", "reason": "package", "source": "example.com/m/a"},
            ],
            "changed_modules": ["example.com/dep"],
        }
        assert built == ["/src"]
        assert analyzer.calls == [("/src/mod", "main", "HEAD")]

    def test_missing_refs(self, client, install_analyzer):
        install_analyzer(StubAnalyzer(ChangeSet()))
        response = client.post("/changed-packages", json={"from_ref": "main"})
        assert response.status_code == 422

    def test_input_error_is_400(self, client, install_analyzer):
        install_analyzer(StubAnalyzer(error=PackageLoadError("syntax error in pkgA")))
        response = client.post("/changed-packages", json={"from_ref": "a", "to_ref": "b"})
        assert response.status_code == 400
        assert "syntax error in pkgA" in response.json()["detail"]

    def test_unexpected_error_is_500(self, client, install_analyzer):
        install_analyzer(StubAnalyzer(error=RuntimeError("boom")))
        response = client.post("/changed-packages", json={"from_ref": "a", "to_ref": "b"})
        assert response.status_code == 500
        assert response.json()["detail"] == "boom"
