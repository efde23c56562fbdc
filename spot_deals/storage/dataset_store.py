# spot_deals/storage/dataset_store.py

"""Persistence of the spot dataset behind a load/store contract."""

import json
import logging
import os
import stat
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

from spot_deals.config.settings import Settings
from spot_deals.models.spot_dataset import SpotDataset

logger = logging.getLogger("spot_deals.storage")


def _publish_mode(target: Path) -> int:
    """Mode for the published file: keep the target's, else 0666 minus umask."""
    try:
        return stat.S_IMODE(target.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


class DatasetStoreError(Exception):
    """The dataset could not be written."""


class DatasetStore(ABC):
    """Document store holding a single :class:`SpotDataset`."""

    @abstractmethod
    def load(self) -> SpotDataset | None:
        """Return the persisted dataset, or ``None`` if there is none."""
        ...

    @abstractmethod
    def store(self, dataset: SpotDataset) -> Path:
        """Persist *dataset*, replacing whatever was there."""
        ...


class JsonFileStore(DatasetStore):
    """Stores the dataset as indented, key-sorted JSON in one file.

    Writes go to a sibling temp file that is then renamed over the
    target, so readers never observe a half-written document.
    """

    def __init__(self, path: Path | None = None) -> None:
        self.path: Path = path or Settings.OUTPUT_PATH
        logger.debug("JsonFileStore initialised, path=%s", self.path)

    def load(self) -> SpotDataset | None:
        if not self.path.exists():
            logger.info("No existing dataset at %s", self.path)
            return None
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
            dataset = SpotDataset.from_dict(data)
        except (OSError, ValueError) as exc:
            logger.warning(
                "Ignoring unreadable dataset at %s: %s",
                self.path,
                exc,
                exc_info=True,
            )
            return None
        logger.info(
            "Loaded dataset from %s (%d regions, updated %s)",
            self.path,
            len(dataset.regions),
            dataset.last_updated,
        )
        return dataset

    def store(self, dataset: SpotDataset) -> Path:
        payload = dataset.canonical_json() + "\n"
        tmp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(payload)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.chmod(tmp_name, _publish_mode(self.path))
            Path(tmp_name).replace(self.path)
        except OSError as exc:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            msg = f"Failed to write dataset to {self.path}: {exc}"
            raise DatasetStoreError(msg) from exc

        logger.info(
            "Saved dataset with %d regions to %s",
            len(dataset.regions),
            self.path,
        )
        return self.path
