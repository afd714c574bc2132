from datetime import datetime

from pydantic import BaseModel


class ProfileCreate(BaseModel):
    name: str


class ProfileOut(BaseModel):
    id: int
    name: str
    game_id: int
    created_at: datetime
    is_active: bool = False
    mods: list[str] = []


class ModOrderUpdate(BaseModel):
    mods: list[str]
