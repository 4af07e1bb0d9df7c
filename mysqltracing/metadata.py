# -*- coding: utf-8 -*-
from __future__ import annotations

from dataclasses import dataclass
from threading import Lock
from typing import Dict, List, Optional

from mysqltracing.connection_spec import ConnectionSpec

DEFAULT_NUM_SHARDS = 16


@dataclass(frozen=True)
class ConnectionMetadata:
    """
    What is known about a driver connection, resolved when it was opened.
    """

    connection_id: int
    server: str
    database: str
    connection_string: str
    port: Optional[int] = None
    user: Optional[str] = None

    @classmethod
    def from_connection_string(
        cls, connection_id: int, connection_string: str
    ) -> ConnectionMetadata:
        spec = ConnectionSpec(connection_string)
        return cls(
            connection_id=connection_id,
            server=spec.server,
            database=spec.database,
            connection_string=connection_string,
            port=spec.port,
            user=spec.user,
        )


class _Shard:
    __slots__ = ["lock", "entries"]

    def __init__(self) -> None:
        self.lock = Lock()
        self.entries: Dict[int, ConnectionMetadata] = {}


class ConnectionMetadataCache:
    """
    Maps driver connection ids to the metadata captured when they opened.

    Keys are spread over independently locked shards, so that connections
    in different shards never wait for each other. Entries are immutable and
    are only published once constructed, which is why reads don't lock.
    """

    def __init__(self, num_shards: int = DEFAULT_NUM_SHARDS):
        if num_shards < 1:
            raise ValueError(f"Number of shards must be positive: {num_shards}")
        self._shards: List[_Shard] = [_Shard() for _ in range(num_shards)]

    def _shard(self, connection_id: int) -> _Shard:
        return self._shards[hash(connection_id) % len(self._shards)]

    def put(self, connection_id: int, metadata: ConnectionMetadata) -> bool:
        """
        Caches metadata for a connection, unless some is already cached.

        Returns True if the metadata was inserted, False if an existing
        entry was kept.
        """
        shard = self._shard(connection_id)
        with shard.lock:
            if connection_id in shard.entries:
                return False
            shard.entries[connection_id] = metadata
            return True

    def get(self, connection_id: int) -> Optional[ConnectionMetadata]:
        return self._shard(connection_id).entries.get(connection_id)

    def evict(self, connection_id: int) -> Optional[ConnectionMetadata]:
        shard = self._shard(connection_id)
        with shard.lock:
            return shard.entries.pop(connection_id, None)

    def clear(self) -> None:
        for shard in self._shards:
            with shard.lock:
                shard.entries.clear()

    def __contains__(self, connection_id: object) -> bool:
        if not isinstance(connection_id, int):
            return False
        return connection_id in self._shard(connection_id).entries

    def __len__(self) -> int:
        return sum(len(shard.entries) for shard in self._shards)
