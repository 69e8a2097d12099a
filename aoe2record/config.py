"""Persistent configuration stored in standard user data directories"""
import os
import platform
import yaml
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict


def _platform_data_dir() -> Path:
    if platform.system() == "Windows":
        return Path(os.environ["LOCALAPPDATA"])
    else:
        xdg_data_home = os.environ.get("XDG_DATA_HOME")
        if xdg_data_home:
            return Path(xdg_data_home)
        return Path.home() / ".local" / "share"


data_dir = _platform_data_dir() / "aoe2record"
config_file = data_dir / "config.yaml"


class Config(BaseModel):
    strict_codes: bool = False
    """Fail on enumeration codes with no known label instead of reporting Unknown"""
    json_indent: int = 2
    check_trailing_alignment: bool = True
    """Warn when the replay timing block looks misaligned"""

    @staticmethod
    def load(path: Optional[Path] = None) -> "Config":
        path = path or config_file
        if path.exists():
            with path.open("rt", encoding="utf-8") as f:
                content = yaml.load(f, Loader=yaml.SafeLoader) or {}
                return Config.model_validate(content)
        return Config()

    def save(self, path: Optional[Path] = None):
        path = path or config_file
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("wt", encoding="utf-8") as f:
            yaml.dump(self.model_dump(mode="json"), f, width=float("inf"))

    model_config = ConfigDict(extra="ignore")
