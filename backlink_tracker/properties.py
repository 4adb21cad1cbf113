# backlink_tracker/properties.py
"""
Durable string key/value properties.

- Storage: diskcache.Cache (robust, fast, cross-platform), no expiry.
- Location: a visible folder in CWD by default; optionally the OS-specific
  app cache dir via platformdirs.
- Holds the progress state of the current cycle and the armed triggers.
"""
from __future__ import annotations

import dataclasses
import json
import logging
from typing import Dict, List, Optional, Protocol

import diskcache
from platformdirs import user_cache_dir as _user_cache_dir

from backlink_tracker.models import ProgressState

log = logging.getLogger(__name__)

CURRENT_ROW = "currentRow"
CURRENT_DATASET_INDEX = "currentDatasetIndex"
DATASET_NAMES = "datasetNames"

FIRST_DATA_ROW = 2


class PropertyStore(Protocol):
    def get_property(self, key: str) -> Optional[str]: ...

    def set_property(self, key: str, value: str) -> None: ...

    def delete_property(self, key: str) -> None: ...


@dataclasses.dataclass
class StoreConfig:
    # Either a concrete directory path, or special marker "os-default"
    # for an OS-specific global location.
    directory: str = ".backlink_tracker_state"


class DiskPropertyStore:
    """
    Thin wrapper over diskcache with a string-only key/value contract.
    """

    def __init__(self, cfg: StoreConfig, app_name: str = "backlink_tracker"):
        self.cfg = cfg
        self.app_name = app_name
        directory = cfg.directory
        if directory == "os-default":
            directory = _user_cache_dir(self.app_name, appauthor=False)
        log.debug("Property store at %s", directory)
        self._cache = diskcache.Cache(directory)

    @property
    def directory(self) -> str:
        return str(self._cache.directory)

    def close(self) -> None:
        self._cache.close()

    def __enter__(self) -> "DiskPropertyStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def get_property(self, key: str) -> Optional[str]:
        value = self._cache.get(key)
        return None if value is None else str(value)

    def set_property(self, key: str, value: str) -> None:
        self._cache.set(key, str(value))

    def delete_property(self, key: str) -> None:
        self._cache.delete(key)


class MemoryPropertyStore:
    def __init__(self, initial: Dict[str, str] | None = None) -> None:
        self.values: Dict[str, str] = dict(initial or {})

    def get_property(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def set_property(self, key: str, value: str) -> None:
        self.values[key] = str(value)

    def delete_property(self, key: str) -> None:
        self.values.pop(key, None)


# ---- Progress state (de)serialization -----------------------------------


def fresh_state(dataset_names: List[str]) -> ProgressState:
    return ProgressState(
        dataset_names=list(dataset_names),
        current_dataset_index=0,
        current_row=FIRST_DATA_ROW,
    )


def save_state(store: PropertyStore, state: ProgressState) -> None:
    store.set_property(DATASET_NAMES, json.dumps(state.dataset_names))
    store.set_property(CURRENT_DATASET_INDEX, str(state.current_dataset_index))
    store.set_property(CURRENT_ROW, str(state.current_row))


def load_state(store: PropertyStore, default_datasets: List[str]) -> ProgressState:
    """
    Read the persisted state. Absent or corrupt state yields a freshly
    started cycle over `default_datasets`.
    """
    raw_names = store.get_property(DATASET_NAMES)
    raw_index = store.get_property(CURRENT_DATASET_INDEX)
    raw_row = store.get_property(CURRENT_ROW)

    if raw_names is None and raw_index is None and raw_row is None:
        log.info("No persisted progress state; starting a new cycle.")
        return fresh_state(default_datasets)

    try:
        names = json.loads(raw_names) if raw_names is not None else None
        if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
            raise ValueError(f"dataset names is not a list of strings: {raw_names!r}")
        index = int(raw_index) if raw_index is not None else 0
        row = int(raw_row) if raw_row is not None else FIRST_DATA_ROW
        if index < 0 or row < FIRST_DATA_ROW:
            raise ValueError(f"out of range: index={index} row={row}")
    except (TypeError, ValueError) as e:
        log.warning("Persisted progress state is corrupt (%s); starting a new cycle.", e)
        return fresh_state(default_datasets)

    return ProgressState(
        dataset_names=names, current_dataset_index=index, current_row=row
    )
