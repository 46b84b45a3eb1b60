"""Tests for the crystalscene public API."""

import crystalscene


class TestPublicAPI:
    def test_all_names_importable(self):
        for name in crystalscene.__all__:
            assert hasattr(crystalscene, name), f"{name} not importable from crystalscene"

    def test_end_to_end_json_to_png(self, fe_json_path, tmp_path):
        viewer = crystalscene.CrystalViewer(crystalscene.FigureMountPoint(200, 150))
        structure = viewer.load(fe_json_path)
        assert len(structure) == 4
        out = tmp_path / "fe.png"
        viewer.save(out)
        assert out.exists()
        assert out.stat().st_size > 0

    def test_load_structure(self, nacl_json_path):
        structure = crystalscene.load_structure(nacl_json_path)
        assert structure.elements == ["Na", "Cl"]
