from __future__ import annotations

from pathlib import Path
from typing import Union

import yaml

from .model import Workspace


PathLike = Union[str, Path]


def load_workspace(path: PathLike) -> Workspace:
    path = Path(path)
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    return Workspace(**data)


def save_workspace(workspace: Workspace, path: PathLike) -> None:
    path = Path(path)
    data = workspace.model_dump(mode="json")
    text = yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
    path.write_text(text, encoding="utf-8")
