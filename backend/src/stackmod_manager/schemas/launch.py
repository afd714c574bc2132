from pydantic import BaseModel


class LaunchResult(BaseModel):
    exit_code: int
    mounted_paths: list[str]
