"""Unit tests for logging compliance across the codebase.

These tests enforce that library code reports through the output sink or the
logging module and never calls print() directly.
"""

import re
from pathlib import Path

import pytest

SRC_DIR = Path(__file__).parent.parent.parent / "src" / "stylesync"


class TestLoggingCompliance:
    """Test cases for logging vs print statement compliance."""

    def test_no_print_statements_in_library_code(self):
        """Verify no print() calls exist outside the CLI.

        Note: CLI output goes through rich and is legitimately user-facing.
        """
        assert SRC_DIR.exists(), f"Source directory not found: {SRC_DIR}"

        python_files = [p for p in SRC_DIR.rglob("*.py") if "__pycache__" not in p.parts and p.name != "cli.py"]
        assert len(python_files) > 0, "No Python files found in src/"

        violations = []
        for file_path in python_files:
            lines = file_path.read_text(encoding="utf-8").split("\n")
            for line_num, line in enumerate(lines, start=1):
                if line.strip().startswith("#"):
                    continue
                # Word boundary keeps helper names like _print() out
                if re.search(r"(?<![\w.])print\s*\(", line):
                    violations.append(f"{file_path}:{line_num}: {line.strip()}")

        if violations:
            violation_report = "\n".join(violations)
            pytest.fail(f"Found {len(violations)} print() calls in library code:\n{violation_report}\n\nUse SyncOutput or logging instead.")

    @pytest.mark.parametrize("module", ["compiler.py", "scanner.py", "cleaner.py", "engine.py"])
    def test_module_logger_defined(self, module):
        """Verify modules use a module-level logger named after the module."""
        content = (SRC_DIR / module).read_text(encoding="utf-8")

        assert "import logging" in content
        assert "logger = logging.getLogger(__name__)" in content
