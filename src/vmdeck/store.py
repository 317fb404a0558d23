"""Directory-backed store of VM definition records."""

import os
import tempfile
from pathlib import Path
from typing import Dict, List

import structlog
import yaml
from pydantic import ValidationError as PydanticValidationError

from vmdeck.exceptions import CorruptRecord, NotFound, ValidationError
from vmdeck.models import VMConfig
from vmdeck.paths import RECORD_SUFFIX, image_path, record_path, seed_path
from vmdeck.validation import first_invalid_field, is_name

log = structlog.get_logger(__name__)


class ConfigStore:
    """Persist VM profiles as one flat YAML record per VM under *root*.

    Records are parsed with ``yaml.safe_load`` and never executed. Writes
    replace the whole record atomically; concurrent writers to the same name
    are last-writer-wins.
    """

    def __init__(self, root: Path):
        self.root = Path(root)

    def record_path(self, name: str) -> Path:
        return record_path(self.root, name)

    def image_path(self, name: str) -> Path:
        return image_path(self.root, name)

    def seed_path(self, name: str) -> Path:
        return seed_path(self.root, name)

    def _derived_paths(self, name: str):
        return (
            ("img_file_path", self.image_path(name)),
            ("seed_file_path", self.seed_path(name)),
        )

    def list(self) -> List[str]:
        """Names of every stored VM, sorted."""
        if not self.root.is_dir():
            return []
        names = []
        for entry in self.root.iterdir():
            if entry.is_file() and entry.name.endswith(RECORD_SUFFIX):
                name = entry.name[: -len(RECORD_SUFFIX)]
                if is_name(name):
                    names.append(name)
        return sorted(names)

    def exists(self, name: str) -> bool:
        return is_name(name) and self.record_path(name).is_file()

    def load(self, name: str) -> VMConfig:
        """Load a VM profile.

        Raises:
            NotFound: no record exists for *name*
            CorruptRecord: the record cannot be parsed into every field
        """
        if not self.exists(name):
            raise NotFound(name)

        path = self.record_path(name)
        try:
            raw = yaml.safe_load(path.read_text())
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            raise CorruptRecord(name, path, str(e)) from e

        if not isinstance(raw, dict):
            raise CorruptRecord(name, path, "record must be a key/value mapping")

        record: Dict[str, str] = {}
        for key, value in raw.items():
            if isinstance(value, (dict, list)) or value is None:
                raise CorruptRecord(name, path, f"field '{key}' must be a plain value")
            if isinstance(value, bool):
                value = "true" if value else "false"
            record[str(key)] = str(value)

        try:
            config = VMConfig.from_record(record)
        except (PydanticValidationError, ValueError) as e:
            raise CorruptRecord(name, path, str(e)) from e

        if config.name != name:
            raise CorruptRecord(name, path, f"record names VM '{config.name}'")
        for key, expected in self._derived_paths(name):
            if getattr(config, key) != expected:
                raise CorruptRecord(name, path, f"{key} must be {expected}")

        log.debug("store.loaded", vm_name=name, path=str(path))
        return config

    def save(self, config: VMConfig) -> Path:
        """Write *config* to its record, replacing any previous one."""
        invalid = first_invalid_field(config.model_dump())
        if invalid:
            raise ValidationError(invalid, getattr(config, invalid), vm_name=config.name)
        for key, expected in self._derived_paths(config.name):
            if getattr(config, key) != expected:
                raise ValidationError(key, getattr(config, key), vm_name=config.name)

        self.root.mkdir(parents=True, exist_ok=True)
        path = self.record_path(config.name)
        content = yaml.safe_dump(config.to_record(), default_flow_style=False, sort_keys=False)

        fd, tmp_name = tempfile.mkstemp(prefix=f".{config.name}.", suffix=".tmp", dir=self.root)
        try:
            with os.fdopen(fd, "w") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        log.info("store.saved", vm_name=config.name, path=str(path))
        return path
