from pathlib import Path

import pytest

from stackmod_manager.services.backup_vault import BackupVault


@pytest.fixture
def target(tmp_path):
    d = tmp_path / "Data"
    d.mkdir()
    return d


@pytest.fixture
def vault(tmp_path):
    return BackupVault(tmp_path / "Backup")


class TestStore:
    def test_moves_file_and_creates_parents(self, vault, target):
        source = target / "Textures" / "sky.dds"
        source.parent.mkdir()
        source.write_bytes(b"vanilla")

        vault.store(Path("Textures/sky.dds"), source)

        assert not source.exists()
        assert (vault.root / "Textures" / "sky.dds").read_bytes() == b"vanilla"

    def test_contains(self, vault, target):
        (target / "a.esp").write_bytes(b"a")
        assert not vault.contains(Path("a.esp"))
        vault.store(Path("a.esp"), target / "a.esp")
        assert vault.contains(Path("a.esp"))

    def test_contains_false_when_vault_missing(self, vault):
        assert not vault.root.exists()
        assert not vault.contains(Path("anything.txt"))

    def test_stored_paths(self, vault, target):
        (target / "x").mkdir()
        (target / "x" / "one.txt").write_bytes(b"1")
        (target / "two.txt").write_bytes(b"2")
        vault.store(Path("x/one.txt"), target / "x" / "one.txt")
        vault.store(Path("two.txt"), target / "two.txt")

        assert vault.stored_paths() == [Path("two.txt"), Path("x/one.txt")]
        assert not vault.is_empty()


class TestRestoreAll:
    def test_restores_nested_files(self, vault, target):
        (target / "a" / "b").mkdir(parents=True)
        (target / "a" / "b" / "deep.txt").write_bytes(b"deep")
        (target / "top.txt").write_bytes(b"top")
        vault.store(Path("a/b/deep.txt"), target / "a" / "b" / "deep.txt")
        vault.store(Path("top.txt"), target / "top.txt")

        restored = vault.restore_all(target)

        assert restored == 2
        assert (target / "a" / "b" / "deep.txt").read_bytes() == b"deep"
        assert (target / "top.txt").read_bytes() == b"top"

    def test_leaves_vault_root_empty(self, vault, target):
        (target / "a" / "b").mkdir(parents=True)
        (target / "a" / "b" / "deep.txt").write_bytes(b"deep")
        vault.store(Path("a/b/deep.txt"), target / "a" / "b" / "deep.txt")

        vault.restore_all(target)

        assert vault.root.is_dir()
        assert list(vault.root.iterdir()) == []
        assert vault.is_empty()

    def test_overwrites_file_at_destination(self, vault, target):
        (target / "f.txt").write_bytes(b"original")
        vault.store(Path("f.txt"), target / "f.txt")
        (target / "f.txt").write_bytes(b"leftover")

        vault.restore_all(target)

        assert (target / "f.txt").read_bytes() == b"original"

    def test_noop_without_vault(self, vault, target):
        assert vault.restore_all(target) == 0
