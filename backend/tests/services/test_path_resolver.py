from pathlib import Path, PurePosixPath

import pytest

from stackmod_manager.services.path_resolver import (
    PathResolutionError,
    resolve_case_insensitive,
)


@pytest.fixture
def data_dir(tmp_path):
    root = tmp_path / "Data"
    (root / "Textures" / "Armor").mkdir(parents=True)
    (root / "Textures" / "Armor" / "Iron.dds").write_bytes(b"iron")
    (root / "meshes").mkdir()
    (root / "Skyrim.esm").write_bytes(b"esm")
    return root


class TestResolveCaseInsensitive:
    def test_correct_casing_is_unchanged(self, data_dir):
        rel = Path("Textures/Armor/Iron.dds")
        assert resolve_case_insensitive(data_dir, rel) == rel

    def test_adopts_on_disk_casing(self, data_dir):
        result = resolve_case_insensitive(data_dir, "textures/ARMOR/iron.DDS")
        assert result == Path("Textures/Armor/Iron.dds")

    def test_new_component_keeps_input_casing(self, data_dir):
        result = resolve_case_insensitive(data_dir, "TEXTURES/armor/NewFolder/Steel.dds")
        assert result == Path("Textures/Armor/NewFolder/Steel.dds")

    def test_passthrough_after_first_miss(self, data_dir):
        # "meshes" exists at the root, but matching stops once "Missing" misses.
        result = resolve_case_insensitive(data_dir, "Missing/MESHES")
        assert result == Path("Missing/MESHES")

    def test_file_prefix_stops_matching(self, data_dir):
        result = resolve_case_insensitive(data_dir, "skyrim.esm/child.txt")
        assert result == Path("Skyrim.esm/child.txt")

    def test_accepts_windows_separators(self, data_dir):
        result = resolve_case_insensitive(data_dir, "textures\\armor\\iron.dds")
        assert result == Path("Textures/Armor/Iron.dds")

    def test_accepts_pure_paths(self, data_dir):
        result = resolve_case_insensitive(data_dir, PurePosixPath("MESHES/a.nif"))
        assert result == Path("meshes/a.nif")

    def test_idempotent(self, data_dir):
        once = resolve_case_insensitive(data_dir, "textures/armor/NEW/x.dds")
        assert resolve_case_insensitive(data_dir, once) == once

    def test_prefers_exact_match_when_casings_collide(self, data_dir):
        (data_dir / "textures").mkdir()
        assert resolve_case_insensitive(data_dir, "textures/a.dds") == Path("textures/a.dds")
        assert resolve_case_insensitive(data_dir, "Textures/a.dds") == Path("Textures/a.dds")

    def test_does_not_touch_disk(self, data_dir):
        before = sorted(p.relative_to(data_dir) for p in data_dir.rglob("*"))
        resolve_case_insensitive(data_dir, "brand/new/path.txt")
        after = sorted(p.relative_to(data_dir) for p in data_dir.rglob("*"))
        assert before == after

    def test_rejects_parent_components(self, data_dir):
        with pytest.raises(ValueError, match="escapes"):
            resolve_case_insensitive(data_dir, "../outside.txt")

    def test_rejects_absolute_paths(self, data_dir):
        with pytest.raises(ValueError, match="relative"):
            resolve_case_insensitive(data_dir, "/etc/passwd")

    def test_unreadable_directory_is_an_error(self, data_dir, monkeypatch):
        def _denied(path):
            raise PermissionError(13, "Permission denied", str(path))

        monkeypatch.setattr("stackmod_manager.services.path_resolver.os.scandir", _denied)
        with pytest.raises(PathResolutionError, match="Cannot list directory"):
            resolve_case_insensitive(data_dir, "textures/x.dds")
