import os
from contextlib import contextmanager
from copy import deepcopy
from typing import Any, Iterator, Optional

from tinydb import Query, TinyDB
from tinydb.storages import MemoryStorage
from tinydb.table import Table

Meta = Query()


class DB(TinyDB):
    """
    TinyDB with an all-or-nothing unit of work.

    Every mutating call of the settlement core runs inside `atomic()`. The full database
    is snapshotted on entry and written back if the block raises, so a failed call never
    leaves a partial write behind. Nested blocks join the outermost one.

    Pass no path to keep everything in memory.
    """

    def __init__(self, path: Optional[str] = None, drop=False, **kwargs):
        self._depth = 0
        if path is None:
            super().__init__(storage=MemoryStorage, **kwargs)
        else:
            # check if the directory exists
            create_dirs = self.exists(path) == False
            super().__init__(path, indent=4, create_dirs=create_dirs, **kwargs)

        if drop:
            self.drop_tables()

    @staticmethod
    def exists(path: str):
        return os.path.exists(path)

    @contextmanager
    def atomic(self) -> Iterator["DB"]:
        if self._depth > 0:
            self._depth += 1
            try:
                yield self
            finally:
                self._depth -= 1
            return

        snapshot = deepcopy(self.storage.read() or {})
        self._depth = 1
        try:
            yield self
        except BaseException:
            self.storage.write(snapshot)
            raise
        finally:
            self._depth = 0

    def versioned_table(self, namespace: str, version: int, name: str) -> Table:
        # query caching is off: a rollback rewrites storage underneath the table
        return self.table(f"{namespace}.v{version}.{name}", cache_size=0)


def get_meta(table: Table, key: str, default: Any = None) -> Any:
    row = table.get(Meta.key == key)
    if row is None:
        return default
    return row["value"]


def set_meta(table: Table, key: str, value: Any) -> None:
    table.upsert({"key": key, "value": value}, Meta.key == key)
