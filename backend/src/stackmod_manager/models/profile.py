from datetime import UTC, datetime
from typing import Optional

from sqlmodel import Field, Relationship, SQLModel


class Profile(SQLModel, table=True):
    __tablename__ = "profiles"

    id: int | None = Field(default=None, primary_key=True)
    game_id: int = Field(foreign_key="games.id", index=True)
    name: str = Field(index=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    mods: list["ProfileMod"] = Relationship(
        back_populates="profile",
        cascade_delete=True,
        sa_relationship_kwargs={"order_by": "ProfileMod.position"},
    )


class ProfileMod(SQLModel, table=True):
    """An enabled mod in a profile; ``position`` is its load order (0 = lowest priority)."""

    __tablename__ = "profile_mods"

    id: int | None = Field(default=None, primary_key=True)
    profile_id: int = Field(foreign_key="profiles.id", index=True)
    mod_name: str = Field(index=True)
    position: int = 0

    profile: Optional["Profile"] = Relationship(back_populates="mods")
