"""Pytest configuration and fixtures for stylesync tests.

Provides two stand-ins for the sass compiler:

- RecordingCompiler: in-process fake with the ProcessCompiler interface, used
  for scanner and engine tests.
- fake_compiler_script: a real executable script, used where the actual
  subprocess contract (argv, cwd, exit code, stderr) matters.
"""

import io
import os
import stat
import sys
import threading
import time
from pathlib import Path
from typing import Optional

import pytest

from stylesync.errors import CompilationFailure
from stylesync.output import SyncOutput

FAKE_COMPILER_SOURCE = '''#!__PYTHON__
"""Test compiler: copies the source to the output, fails on '@error'."""
import os
import sys
from pathlib import Path

here = Path(__file__).resolve().parent
source, output = sys.argv[1], sys.argv[2]
with open(here / "calls.log", "a", encoding="utf-8") as log:
    log.write(os.getcwd() + "|" + source + "|" + output + "\\n")

text = Path(source).read_text(encoding="utf-8")
if "@error" in text:
    sys.stderr.write("Error: forced failure\\n")
    sys.stderr.write("  on line 1 of " + source + "\\n")
    sys.exit(3)
if "@warn" in text:
    sys.stderr.write("Deprecation: slash division\\n")
if "@hang" in text:
    import time
    time.sleep(60)
print("compiling " + source)
Path(output).write_text("/* " + Path(source).name + " */\\n" + text, encoding="utf-8")
'''


class RecordingCompiler:
    """In-process compiler that records calls and writes a stub CSS file."""

    def __init__(self, fail_on: tuple[str, ...] = (), delay: float = 0.0):
        self.fail_on = fail_on
        self.delay = delay
        self.calls: list[tuple[Path, Path]] = []
        self.cancelled = False
        self._lock = threading.Lock()

    def compile(self, source_path: Path, output_path: Path) -> None:
        with self._lock:
            self.calls.append((source_path, output_path))
        if self.delay:
            time.sleep(self.delay)
        if source_path.name in self.fail_on:
            raise CompilationFailure(source_path, output_path, 1, "Error: forced failure\n")
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(f"/* {source_path.name} */\n", encoding="utf-8")

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def compiled_names(self) -> list[str]:
        return [source.name for source, _ in self.calls]


class FakeCompilerScript:
    """Executable test compiler written into a temporary directory."""

    def __init__(self, directory: Path):
        self.directory = directory
        self.path = directory / "fake-sass"
        self.log_path = directory / "calls.log"
        directory.mkdir(parents=True, exist_ok=True)
        self.path.write_text(FAKE_COMPILER_SOURCE.replace("__PYTHON__", sys.executable), encoding="utf-8")
        self.path.chmod(self.path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

    def calls(self) -> list[tuple[str, str, str]]:
        """(cwd, source, output) for every invocation so far."""
        if not self.log_path.exists():
            return []
        lines = self.log_path.read_text(encoding="utf-8").splitlines()
        return [tuple(line.split("|")) for line in lines if line]  # type: ignore[misc]


@pytest.fixture
def recording_compiler():
    """In-process compiler fake."""
    return RecordingCompiler()


@pytest.fixture
def fake_compiler_script(tmp_path):
    """Executable compiler script in its own directory."""
    if sys.platform == "win32":
        pytest.skip("Shebang scripts are not executable on Windows")
    return FakeCompilerScript(tmp_path / "tools")


@pytest.fixture
def output_stream():
    """Captured output sink stream."""
    return io.StringIO()


@pytest.fixture
def sync_output(output_stream):
    """Output sink writing into output_stream."""
    return SyncOutput(stream=output_stream)


@pytest.fixture
def style_tree(tmp_path, monkeypatch):
    """Empty source and output roots, with the working directory set to tmp_path."""
    source = tmp_path / "styles"
    output = tmp_path / "out"
    source.mkdir()
    monkeypatch.chdir(tmp_path)
    return {"root": tmp_path, "source": source, "output": output}


def _write_file(path: Path, content: str = "", mtime: Optional[float] = None) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


@pytest.fixture
def write_file():
    """Write a file, creating parents, optionally pinning its modification time."""
    return _write_file


@pytest.fixture(autouse=True)
def _restore_stdio():  # noqa: PT004
    """Ensure stdout/stderr are always restored after each test."""
    yield

    if sys.stdout.closed:
        sys.stdout = sys.__stdout__
    if sys.stderr.closed:
        sys.stderr = sys.__stderr__
