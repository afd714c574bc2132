import os
import subprocess
import tempfile
from collections.abc import Generator

os.environ.setdefault("SMM_DATA_DIR", tempfile.mkdtemp(prefix="stackmod-test-"))

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402
from sqlmodel.pool import StaticPool  # noqa: E402

import stackmod_manager.models  # noqa: E402, F401
from stackmod_manager.config import Settings, get_settings  # noqa: E402
from stackmod_manager.database import get_session  # noqa: E402
from stackmod_manager.main import app  # noqa: E402
from stackmod_manager.models.game import Game  # noqa: E402


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(eng)
    return eng


@pytest.fixture
def session(engine, monkeypatch):
    with Session(engine) as sess:
        monkeypatch.setattr("stackmod_manager.database.engine", engine)
        yield sess


@pytest.fixture
def app_settings(tmp_path) -> Settings:
    """Settings with every data directory under the test's tmp_path."""
    return Settings(data_dir=tmp_path / "data")


@pytest.fixture
def client(engine, app_settings, monkeypatch):
    monkeypatch.setattr("stackmod_manager.database.engine", engine)

    def _override_session() -> Generator[Session, None, None]:
        with Session(engine) as sess:
            yield sess

    app.dependency_overrides[get_session] = _override_session
    app.dependency_overrides[get_settings] = lambda: app_settings
    with TestClient(app, raise_server_exceptions=False) as tc:
        yield tc
    app.dependency_overrides.clear()


@pytest.fixture
def make_game(session, tmp_path):
    def _make(
        name: str = "Skyrim Special Edition",
        domain_name: str = "skyrimspecialedition",
        data_files: dict[str, bytes] | None = None,
        **fields,
    ) -> Game:
        install = tmp_path / "games" / domain_name
        (install / "Data").mkdir(parents=True, exist_ok=True)
        for rel, content in (data_files or {}).items():
            path = install / "Data" / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
        game = Game(name=name, domain_name=domain_name, install_path=str(install), **fields)
        session.add(game)
        session.commit()
        session.refresh(game)
        return game

    return _make


@pytest.fixture
def make_mod(app_settings):
    """Write a mod tree into the store: ``make_mod(game, "Name", {"rel/path": b"..."})``."""

    def _make(game: Game, name: str, files: dict[str, bytes]):
        root = app_settings.mods_dir / game.domain_name / name
        root.mkdir(parents=True, exist_ok=True)
        for rel, content in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
        return root

    return _make


class FakeTools:
    """Stand-in for ``subprocess.run`` that records calls and fails on request.

    ``fail`` maps a ``(tool, target)`` pair to how many more calls should
    exit non-zero; ``missing`` holds tools that raise FileNotFoundError.
    """

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.fail: dict[tuple[str, str], int] = {}
        self.missing: set[str] = set()

    def __call__(self, args, **kwargs):
        args = [str(a) for a in args]
        self.calls.append(args)
        tool = args[0]
        if tool in self.missing:
            raise FileNotFoundError(f"No such file or directory: '{tool}'")
        key = (tool, args[-1])
        if self.fail.get(key, 0) > 0:
            self.fail[key] -= 1
            return subprocess.CompletedProcess(args, 1, "", "device busy")
        return subprocess.CompletedProcess(args, 0, "", "")

    def calls_for(self, tool: str) -> list[list[str]]:
        return [c for c in self.calls if c[0] == tool]


@pytest.fixture
def fake_tools(monkeypatch) -> FakeTools:
    tools = FakeTools()
    monkeypatch.setattr("stackmod_manager.services.mount_session.subprocess.run", tools)
    return tools
