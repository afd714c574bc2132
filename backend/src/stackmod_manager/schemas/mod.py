from pydantic import BaseModel


class ModOut(BaseModel):
    name: str
    file_count: int


class ModCreate(BaseModel):
    name: str


class ModInstallRequest(BaseModel):
    archive_path: str
    name: str | None = None


class ModInstallResult(BaseModel):
    name: str
    files_installed: int
