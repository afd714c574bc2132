"""Read-only directory providers for a game.

Library discovery (Steam, Wine prefixes) happens elsewhere; the engine
only needs the resolved install, data, config and appdata directories.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from stackmod_manager.models.game import Game


class GameDirectories(Protocol):
    def install_dir(self) -> Path: ...

    def data_dir(self) -> Path: ...

    def config_dir(self) -> Path | None: ...

    def appdata_dir(self) -> Path | None: ...


@dataclass(frozen=True)
class GamePaths:
    install: Path
    data_subdir: str = "Data"
    config: Path | None = None
    appdata: Path | None = None

    @classmethod
    def from_game(cls, game: Game) -> GamePaths:
        return cls(
            install=Path(game.install_path),
            data_subdir=game.data_subdir,
            config=Path(game.config_path) if game.config_path else None,
            appdata=Path(game.appdata_path) if game.appdata_path else None,
        )

    def install_dir(self) -> Path:
        return self.install

    def data_dir(self) -> Path:
        return self.install / self.data_subdir if self.data_subdir else self.install

    def config_dir(self) -> Path | None:
        return self.config

    def appdata_dir(self) -> Path | None:
        return self.appdata
