"""Debug output of the resolved target file for editor integrations."""

from __future__ import annotations

from typing import TYPE_CHECKING

from covterm import logger

if TYPE_CHECKING:
    from pathlib import Path


class TargetFileWriter:
    """Write the resolved target path to a single-line file, replacing old content."""

    def __init__(self, target_file: str, path: Path) -> None:
        self.target_file = target_file
        self.path = path

    def write_target_info_file(self) -> Path:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(f"{self.target_file}\n", encoding="utf-8")
        logger.debug("wrote target %s to %s", self.target_file, self.path)
        return self.path


__all__ = ["TargetFileWriter"]
