"""Tests for constant tables."""

import logging

import pytest

from texalg import constants as constants_module
from texalg.constants import (
    PHYSICS_CONSTANTS, NO_CONSTANTS, BUILTIN_CONSTANTS,
    merge_bindings, load_custom_constants,
)


class TestBuiltinTables:
    """Tests for the shipped tables."""

    def test_physics_values(self):
        """Exact SI values."""
        assert PHYSICS_CONSTANTS["c"] == 299792458.0
        assert PHYSICS_CONSTANTS["h"] == 6.62607015e-34
        assert "\\hbar" in PHYSICS_CONSTANTS
        assert "k_B" in PHYSICS_CONSTANTS

    def test_builtin_names(self):
        """Tables are selectable by name."""
        assert BUILTIN_CONSTANTS["physics"] is PHYSICS_CONSTANTS
        assert BUILTIN_CONSTANTS["none"] is NO_CONSTANTS
        assert NO_CONSTANTS == {}


class TestMergeBindings:
    """Tests for merge_bindings."""

    def test_bindings_win(self):
        """Bindings override constants."""
        assert merge_bindings({"c": 3e8}, {"c": 1.0, "x": 2.0}) == {"c": 1.0, "x": 2.0}

    def test_none_inputs(self):
        """Either side may be missing."""
        assert merge_bindings(None, {"x": 1.0}) == {"x": 1.0}
        assert merge_bindings({"c": 1.0}, None) == {"c": 1.0}

    def test_inputs_not_modified(self):
        """A new dict is returned."""
        table = {"c": 1.0}
        merged = merge_bindings(table, {"x": 2.0})
        merged["c"] = 5.0
        assert table == {"c": 1.0}


class TestLoadCustomConstants:
    """Tests for loading constant files."""

    def test_load_by_path(self, tmp_path):
        """A .py path is loaded directly."""
        path = tmp_path / "astro.py"
        path.write_text('CONSTANTS = {"AU": 1.495978707e11, "n": 3}\n')
        table = load_custom_constants(str(path))
        assert table == {"AU": 1.495978707e11, "n": 3.0}
        assert isinstance(table["n"], float)

    def test_load_by_name(self, tmp_path, monkeypatch):
        """A bare name is searched for."""
        (tmp_path / "lab.py").write_text('CONSTANTS = {"k": 2.5}\n')
        monkeypatch.setattr(constants_module, "CONSTANTS_SEARCH_PATHS", [tmp_path])
        assert load_custom_constants("lab") == {"k": 2.5}

    def test_missing_file(self, tmp_path, monkeypatch):
        """Unknown names and paths give None."""
        monkeypatch.setattr(constants_module, "CONSTANTS_SEARCH_PATHS", [tmp_path])
        assert load_custom_constants("nothing") is None
        assert load_custom_constants(str(tmp_path / "nothing.py")) is None

    def test_no_constants_defined(self, tmp_path, caplog):
        """A file without CONSTANTS is reported and skipped."""
        path = tmp_path / "empty.py"
        path.write_text("VALUES = {}\n")
        with caplog.at_level(logging.WARNING, logger="texalg.constants"):
            assert load_custom_constants(str(path)) is None
        assert "defines no CONSTANTS" in caplog.text

    def test_bad_value(self, tmp_path):
        """Non-numeric values raise."""
        path = tmp_path / "bad.py"
        path.write_text('CONSTANTS = {"k": "fast"}\n')
        with pytest.raises(ValueError):
            load_custom_constants(str(path))

    def test_file_errors_propagate(self, tmp_path):
        """Errors in the file are not hidden."""
        path = tmp_path / "broken.py"
        path.write_text("CONSTANTS = {\n")
        with pytest.raises(SyntaxError):
            load_custom_constants(str(path))
