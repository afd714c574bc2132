from datetime import datetime

from pydantic import BaseModel


class GameCreate(BaseModel):
    name: str
    domain_name: str
    install_path: str
    data_subdir: str = "Data"
    config_path: str = ""
    appdata_path: str = ""
    launch_command: str = ""


class GameOut(BaseModel):
    id: int
    name: str
    domain_name: str
    install_path: str
    data_subdir: str
    config_path: str
    appdata_path: str
    launch_command: str
    active_profile_id: int | None
    created_at: datetime
