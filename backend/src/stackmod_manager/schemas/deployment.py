from pydantic import BaseModel


class DeployResult(BaseModel):
    mods_deployed: int
    files_copied: int
    directories_created: int
    files_backed_up: int
    deployed: bool


class UndeployResult(BaseModel):
    files_removed: int
    directories_removed: int
    files_restored: int


class DeploymentStatus(BaseModel):
    deployed: bool
    target_dir: str
    recorded_paths: list[str]
    backed_up_files: list[str]
