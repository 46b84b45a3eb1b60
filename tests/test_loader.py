"""Tests for reading crystal JSON from files, text, and pymatgen."""

import json

import pytest

from crystalscene.errors import MalformedStructureInput
from crystalscene.loader import from_pymatgen, load_structure, read_crystal_json
from crystalscene.model import AsymmetricUnitInput, ExpandedSitesInput

_has_pymatgen = False
try:
    from pymatgen.core import Lattice, Structure

    _has_pymatgen = True
except ImportError:
    pass


class TestReadCrystalJson:
    def test_path_object(self, fe_json_path):
        parsed = read_crystal_json(fe_json_path)
        assert isinstance(parsed, AsymmetricUnitInput)
        assert parsed.space_group == "Pnma"

    def test_path_string(self, nacl_json_path):
        parsed = read_crystal_json(str(nacl_json_path))
        assert isinstance(parsed, ExpandedSitesInput)
        assert len(parsed.sites) == 2

    def test_inline_text(self, fe_json_path):
        parsed = read_crystal_json(fe_json_path.read_text())
        assert isinstance(parsed, AsymmetricUnitInput)

    def test_inline_text_with_leading_whitespace(self, fe_json_path):
        parsed = read_crystal_json("\n  " + fe_json_path.read_text())
        assert len(parsed.sites) == 1

    def test_non_utf8_file(self, tmp_path):
        path = tmp_path / "binary.json"
        path.write_bytes(b"\xff\xfe{bad")
        with pytest.raises(MalformedStructureInput, match="UTF-8"):
            read_crystal_json(path)

    def test_pymatgen_extras_ignored(self, nacl_json_path):
        """Extra pymatgen keys such as lattice.matrix are not consumed."""
        parsed = read_crystal_json(nacl_json_path)
        assert parsed.lattice.a == pytest.approx(5.64)
        assert parsed.sites[1].label == "Cl"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_crystal_json(tmp_path / "missing.json")

    def test_invalid_json(self):
        with pytest.raises(MalformedStructureInput, match="invalid JSON"):
            read_crystal_json("{not json")

    def test_wrong_shape(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"hello": "world"}))
        with pytest.raises(MalformedStructureInput):
            read_crystal_json(path)

    def test_empty_species(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({
            "lattice": {"a": 1, "b": 1, "c": 1, "alpha": 90, "beta": 90, "gamma": 90},
            "sites": [{"species": [], "xyz": [0, 0, 0]}],
        }))
        with pytest.raises(MalformedStructureInput, match="species"):
            read_crystal_json(path)


class TestLoadStructure:
    def test_fe(self, fe_json_path):
        structure = load_structure(fe_json_path)
        assert structure.names == ["Fe_0", "Fe_1", "Fe_2", "Fe_3"]

    def test_scale(self, nacl_json_path):
        structure = load_structure(nacl_json_path, scale=1.0)
        assert structure.lattice.a == pytest.approx(5.64)


class TestFromPymatgenImport:
    def test_missing_pymatgen_message(self, monkeypatch):
        import builtins

        real_import = builtins.__import__

        def fake_import(name, *args, **kwargs):
            if name.startswith("pymatgen"):
                raise ImportError("no pymatgen")
            return real_import(name, *args, **kwargs)

        monkeypatch.setattr(builtins, "__import__", fake_import)
        with pytest.raises(ImportError, match="pip install pymatgen"):
            from_pymatgen(object())


@pytest.mark.skipif(not _has_pymatgen, reason="pymatgen not installed")
class TestFromPymatgen:
    def test_rejects_non_structure(self):
        with pytest.raises(TypeError, match="pymatgen Structure"):
            from_pymatgen({"lattice": {}})

    def test_na_cl(self):
        structure = Structure(
            Lattice.cubic(4.0), ["Na", "Cl"], [[0, 0, 0], [0.5, 0.5, 0.5]],
        )
        parsed = from_pymatgen(structure)
        assert isinstance(parsed, ExpandedSitesInput)
        assert [s.element for s in parsed.sites] == ["Na", "Cl"]
        assert parsed.sites[1].xyz == pytest.approx((2.0, 2.0, 2.0))
