from datetime import UTC, datetime

from sqlmodel import Field, SQLModel


class Game(SQLModel, table=True):
    __tablename__ = "games"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(index=True, unique=True)
    domain_name: str = Field(index=True)
    install_path: str
    data_subdir: str = "Data"
    config_path: str = ""
    appdata_path: str = ""
    launch_command: str = ""
    active_profile_id: int | None = Field(default=None)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
