"""Tests for the CFR decompiler service."""

import zipfile
import pytest
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from classlens import decompiler as decompiler_module
from classlens.config import DECOMPILE_CACHE_DIR, ToolConfig
from classlens.decompiler import DecompilerService
from classlens.errors import ExternalToolFailure, LookupMiss


SOURCE = "package org.slf4j;\n\npublic interface Logger {\n}\n"


class FakeScanner:
    def __init__(self, table):
        self.table = table
        self.lookups = []

    def find_jar_for_class(self, class_name, project_path):
        self.lookups.append(class_name)
        return self.table.get(class_name)


@pytest.fixture
def jar(tmp_path):
    path = tmp_path / "slf4j-api.jar"
    with zipfile.ZipFile(path, "w") as zf:
        zf.writestr("org/slf4j/Logger.class", b"\xca\xfe\xba\xbe")
        zf.writestr("org/slf4j/Broken.class", b"\xca\xfe\xba\xbe")
    return path


@pytest.fixture
def calls(monkeypatch):
    recorded = []

    def fake_run_tool(cmd, timeout, cwd=None):
        recorded.append(cmd)
        class_file = Path(cmd[3])
        assert class_file.exists()
        if class_file.name == "Broken.class":
            return "   \n"
        return SOURCE

    monkeypatch.setattr(decompiler_module, "run_tool", fake_run_tool)
    return recorded


@pytest.fixture
def service(jar):
    scanner = FakeScanner({
        "org.slf4j.Logger": str(jar),
        "org.slf4j.Broken": str(jar),
    })
    return DecompilerService(scanner, ToolConfig(cfr_path="/opt/cfr-0.152.jar", java_home="/opt/jdk"))


class TestCachePath:
    def test_package_directories(self, tmp_path):
        path = DecompilerService.cache_path("org.slf4j.Logger", tmp_path)
        assert path == tmp_path / DECOMPILE_CACHE_DIR / "org" / "slf4j" / "Logger.java"

    def test_default_package(self, tmp_path):
        assert DecompilerService.cache_path("Main", tmp_path) == tmp_path / DECOMPILE_CACHE_DIR / "Main.java"


class TestDecompileClass:
    def test_runs_cfr_and_caches(self, service, calls, tmp_path):
        source = service.decompile_class("org.slf4j.Logger", tmp_path)
        assert source == SOURCE

        cmd = calls[0]
        assert cmd[0] == str(Path("/opt/jdk") / "bin" / "java")
        assert cmd[1:3] == ["-jar", "/opt/cfr-0.152.jar"]
        assert cmd[4:] == ["--silent", "true"]
        assert Path(cmd[3]).name == "Logger.class"
        # Temporary extraction directory is gone
        assert not Path(cmd[3]).exists()

        cached = DecompilerService.cache_path("org.slf4j.Logger", tmp_path)
        assert cached.read_text() == SOURCE

    def test_cache_hit_skips_lookup(self, service, calls, tmp_path):
        cached = DecompilerService.cache_path("org.slf4j.Logger", tmp_path)
        cached.parent.mkdir(parents=True)
        cached.write_text("// cached")
        assert service.decompile_class("org.slf4j.Logger", tmp_path) == "// cached"
        assert calls == []
        assert service.scanner.lookups == []

    def test_cache_disabled(self, service, calls, tmp_path):
        cached = DecompilerService.cache_path("org.slf4j.Logger", tmp_path)
        cached.parent.mkdir(parents=True)
        cached.write_text("// stale")
        assert service.decompile_class("org.slf4j.Logger", tmp_path, use_cache=False) == SOURCE
        assert cached.read_text() == "// stale"

    def test_explicit_cfr_path(self, service, calls, tmp_path):
        service.decompile_class("org.slf4j.Logger", tmp_path, use_cache=False, cfr_path="/tmp/cfr.jar")
        assert calls[0][2] == "/tmp/cfr.jar"

    def test_unknown_class(self, service, calls, tmp_path):
        with pytest.raises(LookupMiss) as excinfo:
            service.decompile_class("com.example.Nope", tmp_path)
        assert "scan_dependencies" in str(excinfo.value)

    def test_empty_output(self, service, calls, tmp_path):
        with pytest.raises(ExternalToolFailure):
            service.decompile_class("org.slf4j.Broken", tmp_path)
        assert not DecompilerService.cache_path("org.slf4j.Broken", tmp_path).exists()

    def test_missing_cfr(self, jar, monkeypatch, tmp_path):
        monkeypatch.setattr(decompiler_module, "find_cfr_jar", lambda config: None)
        service = DecompilerService(FakeScanner({"org.slf4j.Logger": str(jar)}), ToolConfig())
        with pytest.raises(ExternalToolFailure):
            service.decompile_class("org.slf4j.Logger", tmp_path)


class TestBatch:
    def test_failures_isolated(self, service, calls, tmp_path):
        results = service.decompile_classes(
            ["org.slf4j.Broken", "com.example.Nope", "org.slf4j.Logger"], tmp_path
        )
        assert list(results) == ["org.slf4j.Broken", "com.example.Nope", "org.slf4j.Logger"]
        assert results["org.slf4j.Broken"].startswith("// Decompilation failed: ")
        assert results["com.example.Nope"].startswith("// Decompilation failed: ")
        assert results["org.slf4j.Logger"] == SOURCE
