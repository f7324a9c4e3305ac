"""Tests for source/output path mapping."""

from pathlib import Path, PurePosixPath, PureWindowsPath

import pytest

from stylesync.paths import (
    is_compiled_output,
    is_partial,
    is_qualifying,
    to_output_path,
    to_source_candidates,
)


class TestToOutputPath:
    """Test mapping of source paths to output paths."""

    @pytest.mark.parametrize(
        "source, expected",
        [
            ("main.scss", "main.css"),
            ("main.sass", "main.css"),
            ("main.SCSS", "main.css"),
            ("main.Scss", "main.css"),
            ("main.SaSs", "main.css"),
        ],
    )
    def test_suffix_replaced_case_insensitively(self, source, expected):
        assert to_output_path(Path(source)) == Path(expected)

    def test_preserves_directories(self):
        """Intermediate directories are untouched."""
        result = to_output_path(Path("components/forms/buttons.scss"))
        assert result == Path("components/forms/buttons.css")

    def test_only_trailing_suffix_replaced(self):
        """A .scss inside the name or a directory is not rewritten."""
        result = to_output_path(Path("theme.scss.d/print.scss.scss"))
        assert result == Path("theme.scss.d/print.scss.css")

    def test_preserves_path_flavour(self):
        assert isinstance(to_output_path(PurePosixPath("a/b.scss")), PurePosixPath)
        assert to_output_path(PureWindowsPath("a\\b.SASS")) == PureWindowsPath("a\\b.css")

    def test_rejects_non_style_sheet(self):
        with pytest.raises(ValueError, match="Not a .sass/.scss file"):
            to_output_path(Path("readme.md"))


class TestToSourceCandidates:
    """Test mapping of output paths back to source paths."""

    def test_candidates_scss_first(self):
        assert to_source_candidates(Path("site/main.css")) == (
            Path("site/main.scss"),
            Path("site/main.sass"),
        )

    def test_uppercase_css_suffix(self):
        assert to_source_candidates(Path("main.CSS"))[0] == Path("main.scss")

    def test_inverse_of_to_output_path(self):
        source = Path("layout/grid.sass")
        assert source in to_source_candidates(to_output_path(source))

    def test_rejects_non_css(self):
        with pytest.raises(ValueError, match="Not a .css file"):
            to_source_candidates(Path("main.scss"))


class TestNamePredicates:
    """Test file name classification."""

    @pytest.mark.parametrize("name", ["a.scss", "a.sass", "A.SCSS", "_vars.scss", "a.b.sass"])
    def test_qualifying(self, name):
        assert is_qualifying(name)

    @pytest.mark.parametrize("name", ["a.css", "a.scss.bak", "a.less", "scss", ".scss", "a.sxss"])
    def test_not_qualifying(self, name):
        assert not is_qualifying(name)

    def test_partial(self):
        assert is_partial("_vars.scss")
        assert not is_partial("vars.scss")
        assert not is_partial("my_vars.scss")

    @pytest.mark.parametrize("name, expected", [("a.css", True), ("a.CSS", True), ("a.css.map", False), ("a.scss", False)])
    def test_compiled_output(self, name, expected):
        assert is_compiled_output(name) is expected
