from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .errors import SaveFileError
from .game import Game
from .save import from_save_data, to_save_data

LOGGER = logging.getLogger("pls7.saves")

_INVALID_FILENAME_CHARS = '/\\:*?"<>|'


@dataclass
class SaveFileInfo:
    filename: str
    full_path: Path
    created_at: datetime
    size: int
    game_metadata: Optional[Dict[str, Any]] = None


class SaveManager:
    """File-system side of saving: one JSON document per saved game."""

    def __init__(self, save_dir: Union[str, Path]) -> None:
        self.save_dir = Path(save_dir)
        try:
            self.save_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise SaveFileError(f"Failed to create save directory {self.save_dir}: {exc}") from exc

    def save_game(self, game: Game, filename: str = "") -> Path:
        if not filename:
            filename = f"save_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
        path = self._path_for(sanitize_filename(filename))

        data = to_save_data(game)
        try:
            path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        except OSError as exc:
            raise SaveFileError(f"Failed to write save file {path}: {exc}") from exc

        LOGGER.info("Game saved to %s", path)
        return path

    def load_game(self, filename: str = "") -> Game:
        if not filename:
            saves = self.list_saves()
            if not saves:
                raise SaveFileError(f"No save files found in directory: {self.save_dir}")
            filename = saves[0].filename
            LOGGER.info("Loading most recent save file: %s", filename)

        path = self._existing_path(filename)
        game = from_save_data(self._read_json(path))
        LOGGER.info("Game loaded from %s", path)
        return game

    def list_saves(self) -> List[SaveFileInfo]:
        """All save files, newest first."""
        saves: List[SaveFileInfo] = []
        for path in self.save_dir.glob("*.json"):
            if not path.is_file():
                continue
            stat = path.stat()
            metadata = None
            try:
                metadata = self._read_json(path).get("game_metadata")
            except (SaveFileError, AttributeError) as exc:
                LOGGER.warning("Failed to read metadata from %s: %s", path.name, exc)
            saves.append(
                SaveFileInfo(
                    filename=path.name,
                    full_path=path,
                    created_at=datetime.fromtimestamp(stat.st_mtime),
                    size=stat.st_size,
                    game_metadata=metadata,
                )
            )
        saves.sort(key=lambda info: info.created_at, reverse=True)
        return saves

    def delete_save(self, filename: str) -> None:
        path = self._existing_path(filename)
        try:
            path.unlink()
        except OSError as exc:
            raise SaveFileError(f"Failed to delete save file {path}: {exc}") from exc
        LOGGER.info("Save file %s deleted", path)

    def validate_save_file(self, filename: str) -> None:
        """Raise SaveFileError unless the file can be loaded."""
        path = self._existing_path(filename)
        data = self._read_json(path)
        if not isinstance(data, dict) or not data.get("players"):
            raise SaveFileError(f"Save file {path} contains no players")
        rules = data.get("game_rules")
        if not isinstance(rules, dict) or not rules.get("name"):
            raise SaveFileError(f"Save file {path} has no game rules")
        from_save_data(data)

    def _path_for(self, filename: str) -> Path:
        if not filename.endswith(".json"):
            filename += ".json"
        return self.save_dir / filename

    def _existing_path(self, filename: str) -> Path:
        path = self._path_for(filename)
        if not path.is_file():
            raise SaveFileError(f"Save file {path} does not exist")
        return path

    @staticmethod
    def _read_json(path: Path) -> Any:
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise SaveFileError(f"Failed to read save file {path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise SaveFileError(f"Invalid JSON format in save file {path}: {exc}") from exc


def sanitize_filename(filename: str) -> str:
    for char in _INVALID_FILENAME_CHARS:
        filename = filename.replace(char, "_")
    filename = filename.strip().strip(".")
    return filename or "save"


# Convenience wrappers for one-off calls from the console.


def save_game_to_file(game: Game, save_dir: Union[str, Path], filename: str = "") -> Path:
    return SaveManager(save_dir).save_game(game, filename)


def load_game_from_file(save_dir: Union[str, Path], filename: str = "") -> Game:
    return SaveManager(save_dir).load_game(filename)


def list_save_files(save_dir: Union[str, Path]) -> List[SaveFileInfo]:
    return SaveManager(save_dir).list_saves()


def delete_save_file(save_dir: Union[str, Path], filename: str) -> None:
    SaveManager(save_dir).delete_save(filename)


def validate_save_file(save_dir: Union[str, Path], filename: str) -> None:
    SaveManager(save_dir).validate_save_file(filename)
