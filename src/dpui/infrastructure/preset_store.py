"""JSON preset persistence.

INVARIANT: the preset file is replaced atomically. A crash mid-write
leaves the previous file intact.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from dpui.domain.errors import PresetStoreError
from dpui.domain.presets import PRESET_FORMAT_VERSION, PresetCollection

logger = logging.getLogger(__name__)

DEFAULT_PRESETS_PATH = Path("~/.config/dpui/presets.json")


class PresetRepository(Protocol):
    """Capability contract for preset persistence."""

    def load_presets(self) -> PresetCollection: ...

    def save_presets(self, collection: PresetCollection) -> None: ...


class JsonPresetStore:
    """Presets stored as pretty-printed JSON in a single file."""

    def __init__(self, path: Path | None = None, *, version: str = PRESET_FORMAT_VERSION) -> None:
        self.path = (path or DEFAULT_PRESETS_PATH).expanduser()
        self.version = version

    def load_presets(self) -> PresetCollection:
        """Return the stored collection, or an empty one if no file exists."""
        if not self.path.exists():
            return PresetCollection(version=self.version)
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            msg = f"Failed to read presets: {exc}"
            raise PresetStoreError(msg) from exc
        try:
            return PresetCollection.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as exc:
            msg = f"Failed to parse presets in {self.path}: {exc}"
            raise PresetStoreError(msg) from exc

    def save_presets(self, collection: PresetCollection) -> None:
        payload = json.dumps(collection.to_json_dict(), indent=2, ensure_ascii=False)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=".presets-", suffix=".json"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(payload + "\n")
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            msg = f"Failed to write presets: {exc}"
            raise PresetStoreError(msg) from exc
        logger.debug("Saved %d presets to %s", len(collection), self.path)
