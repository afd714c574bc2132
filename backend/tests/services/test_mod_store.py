import zipfile
from pathlib import Path

import pytest

from stackmod_manager.services.deployment_record import (
    AlreadyDeployedError,
    DeploymentRecordStore,
)
from stackmod_manager.services.mod_store import (
    ModLayer,
    count_mod_files,
    create_mod,
    find_mod_root,
    install_mod,
    install_mod_from_directory,
    installed_mods,
    mod_installed,
    overlay_lower_dirs,
    uninstall_mod,
)
from stackmod_manager.services.profile_service import create_profile, enable_mod


def _make_zip(path: Path, files: dict[str, bytes]) -> None:
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_STORED) as zf:
        for name, content in files.items():
            zf.writestr(name, content)


@pytest.fixture
def game(make_game):
    return make_game()


class TestOverlayLowerDirs:
    def test_reverses_load_order(self, tmp_path):
        layers = [ModLayer("A", tmp_path / "A"), ModLayer("B", tmp_path / "B")]
        assert overlay_lower_dirs(layers) == [tmp_path / "B", tmp_path / "A"]

    def test_empty(self):
        assert overlay_lower_dirs([]) == []


class TestStore:
    def test_installed_mods_sorted(self, game, app_settings, make_mod):
        make_mod(game, "Zeta", {"z.esp": b"z"})
        make_mod(game, "Alpha", {"a.esp": b"a"})
        assert installed_mods(game, app_settings) == ["Alpha", "Zeta"]

    def test_mods_are_per_game(self, make_game, app_settings, make_mod):
        first = make_game()
        second = make_game(name="Skyrim", domain_name="skyrim")
        make_mod(first, "A", {"a.esp": b"a"})
        assert installed_mods(second, app_settings) == []

    def test_count_files(self, game, app_settings, make_mod):
        make_mod(game, "A", {"a.esp": b"a", "textures/x.dds": b"x"})
        assert count_mod_files(game, app_settings, "A") == 2

    def test_create_mod(self, game, app_settings):
        path = create_mod(game, app_settings, "Empty")
        assert path.is_dir()
        assert mod_installed(game, app_settings, "Empty")

    def test_create_duplicate(self, game, app_settings):
        create_mod(game, app_settings, "Empty")
        with pytest.raises(ValueError, match="already installed"):
            create_mod(game, app_settings, "Empty")

    @pytest.mark.parametrize("name", ["", "..", "a/b", "a\\b"])
    def test_invalid_names(self, game, app_settings, name):
        with pytest.raises(ValueError, match="Invalid mod name"):
            create_mod(game, app_settings, name)


class TestFindModRoot:
    def test_plain_layout(self, tmp_path):
        (tmp_path / "textures").mkdir()
        (tmp_path / "plugin.esp").write_bytes(b"p")
        assert find_mod_root(tmp_path, "MyMod") == tmp_path

    def test_strips_archive_named_wrapper(self, tmp_path):
        (tmp_path / "MyMod" / "textures").mkdir(parents=True)
        assert find_mod_root(tmp_path, "mymod") == tmp_path / "MyMod"

    def test_strips_wrapper_and_data(self, tmp_path):
        (tmp_path / "MyMod" / "Data" / "textures").mkdir(parents=True)
        assert find_mod_root(tmp_path, "MyMod") == tmp_path / "MyMod" / "Data"

    def test_keeps_unrelated_single_folder(self, tmp_path):
        (tmp_path / "textures" / "armor").mkdir(parents=True)
        assert find_mod_root(tmp_path, "MyMod") == tmp_path


class TestInstallFromArchive:
    def test_installs_zip_under_stem(self, game, app_settings, tmp_path):
        archive = tmp_path / "BetterSky.zip"
        _make_zip(archive, {"textures/sky.dds": b"sky", "BetterSky.esp": b"esp"})

        name, files = install_mod(game, app_settings, archive)

        assert name == "BetterSky"
        assert files == 2
        root = app_settings.mods_dir / game.domain_name / "BetterSky"
        assert (root / "textures" / "sky.dds").read_bytes() == b"sky"

    def test_custom_name(self, game, app_settings, tmp_path):
        archive = tmp_path / "download-123.zip"
        _make_zip(archive, {"a.esp": b"a"})

        name, _ = install_mod(game, app_settings, archive, name="Pretty Name")

        assert name == "Pretty Name"
        assert mod_installed(game, app_settings, "Pretty Name")

    def test_strips_wrapper_folders(self, game, app_settings, tmp_path):
        archive = tmp_path / "Trees.zip"
        _make_zip(archive, {"Trees/Data/meshes/tree.nif": b"tree"})

        install_mod(game, app_settings, archive)

        root = app_settings.mods_dir / game.domain_name / "Trees"
        assert (root / "meshes" / "tree.nif").read_bytes() == b"tree"
        assert not (root / "Trees").exists()

    def test_rejects_fomod(self, game, app_settings, tmp_path):
        archive = tmp_path / "Installer.zip"
        _make_zip(archive, {"fomod/ModuleConfig.xml": b"<config/>", "core/a.esp": b"a"})

        with pytest.raises(ValueError, match="FOMOD"):
            install_mod(game, app_settings, archive)

        assert not mod_installed(game, app_settings, "Installer")

    def test_rejects_duplicate(self, game, app_settings, tmp_path, make_mod):
        make_mod(game, "A", {"a.esp": b"old"})
        archive = tmp_path / "A.zip"
        _make_zip(archive, {"a.esp": b"new"})

        with pytest.raises(ValueError, match="already installed"):
            install_mod(game, app_settings, archive)

    def test_missing_archive(self, game, app_settings, tmp_path):
        with pytest.raises(FileNotFoundError):
            install_mod(game, app_settings, tmp_path / "nope.zip")

    def test_unsupported_format(self, game, app_settings, tmp_path):
        archive = tmp_path / "mod.tar"
        archive.write_bytes(b"x")
        with pytest.raises(ValueError, match="Unsupported"):
            install_mod(game, app_settings, archive)


class TestInstallFromDirectory:
    def test_copies_tree(self, game, app_settings, tmp_path):
        source = tmp_path / "unpacked"
        (source / "meshes").mkdir(parents=True)
        (source / "meshes" / "a.nif").write_bytes(b"a")

        assert install_mod_from_directory(game, app_settings, source, "Unpacked") == 1
        assert (source / "meshes" / "a.nif").is_file()

    def test_missing_source(self, game, app_settings, tmp_path):
        with pytest.raises(FileNotFoundError):
            install_mod_from_directory(game, app_settings, tmp_path / "nope", "X")


class TestUninstall:
    def test_removes_files_and_profile_entries(self, session, game, app_settings, make_mod):
        make_mod(game, "A", {"a.esp": b"a"})
        make_mod(game, "B", {"b.esp": b"b"})
        profile = create_profile(game, "Default", session)
        enable_mod(game, profile, "A", app_settings, session)
        enable_mod(game, profile, "B", app_settings, session)

        uninstall_mod(game, app_settings, session, "A")

        session.refresh(profile)
        assert [m.mod_name for m in profile.mods] == ["B"]
        assert not mod_installed(game, app_settings, "A")

    def test_missing_mod(self, session, game, app_settings):
        with pytest.raises(FileNotFoundError):
            uninstall_mod(game, app_settings, session, "Ghost")

    def test_refused_while_deployed(self, session, game, app_settings, make_mod):
        make_mod(game, "A", {"a.esp": b"a"})
        DeploymentRecordStore(session, game.id).append_if_absent(Path("a.esp"))

        with pytest.raises(AlreadyDeployedError):
            uninstall_mod(game, app_settings, session, "A")
        assert mod_installed(game, app_settings, "A")
