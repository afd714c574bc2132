import os
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_data_dir() -> Path:
    if env := os.environ.get("SMM_DATA_DIR"):
        return Path(env)
    base = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share"))
    return base / "stackmod"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SMM_",
        extra="ignore",
    )

    data_dir: Path = Path("")
    db_path: Path = Path("")
    mods_dir: Path = Path("")
    overwrite_dir: Path = Path("")
    configs_dir: Path = Path("")
    backup_dir: Path = Path("")
    overlay_work_dir: Path = Path("")
    overlay_command: str = "fuse-overlayfs"
    unmount_command: str = "umount"
    sevenzip_command: str = "7z"
    host: str = "127.0.0.1"
    port: int = 8426

    @model_validator(mode="after")
    def _resolve_data_paths(self) -> "Settings":
        if self.data_dir == Path(""):
            self.data_dir = _default_data_dir()
        if self.db_path == Path(""):
            self.db_path = self.data_dir / "stackmod.db"
        if self.mods_dir == Path(""):
            self.mods_dir = self.data_dir / "Mods"
        if self.overwrite_dir == Path(""):
            self.overwrite_dir = self.data_dir / "Overwrite"
        if self.configs_dir == Path(""):
            self.configs_dir = self.data_dir / "Configs"
        if self.backup_dir == Path(""):
            self.backup_dir = self.data_dir / "Backup"
        if self.overlay_work_dir == Path(""):
            self.overlay_work_dir = self.data_dir / ".OverlayFS"
        return self


settings = Settings()


def get_settings() -> Settings:
    return settings
