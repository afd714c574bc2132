from sqlmodel import Field, SQLModel


class DeployedPath(SQLModel, table=True):
    """One destination-relative path created or overwritten by a copy deploy."""

    __tablename__ = "deployed_paths"

    id: int | None = Field(default=None, primary_key=True)
    game_id: int = Field(foreign_key="games.id", index=True)
    position: int = Field(index=True)
    relative_path: str
