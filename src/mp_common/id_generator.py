"""Snowflake-style IDs for products, cart entries and transactions.

IDs are decimal strings that increase monotonically within a process, so
`ORDER BY id DESC` matches creation order for rows created by one node.
"""

import threading
import time


class SnowflakeIdGenerator:
    """Layout (64 bits): 41 bits ms since epoch | 10 bits node | 12 bits sequence."""

    EPOCH_MS = 1_735_689_600_000  # 2025-01-01T00:00:00Z
    NODE_BITS = 10
    SEQUENCE_BITS = 12
    MAX_NODE = (1 << NODE_BITS) - 1
    SEQUENCE_MASK = (1 << SEQUENCE_BITS) - 1

    def __init__(self, node_id: int = 0) -> None:
        if not 0 <= node_id <= self.MAX_NODE:
            raise ValueError(f"node_id must be 0-{self.MAX_NODE}")
        self._node_id = node_id
        self._lock = threading.Lock()
        self._last_ms = -1
        self._sequence = 0

    def next_id(self) -> str:
        with self._lock:
            now_ms = int(time.time() * 1000)
            if now_ms < self._last_ms:
                # Clock stepped backwards: keep issuing from the last timestamp
                now_ms = self._last_ms
            if now_ms == self._last_ms:
                self._sequence = (self._sequence + 1) & self.SEQUENCE_MASK
                if self._sequence == 0:
                    while now_ms <= self._last_ms:
                        now_ms = int(time.time() * 1000)
            else:
                self._sequence = 0
            self._last_ms = now_ms

            value = (
                (now_ms - self.EPOCH_MS) << (self.NODE_BITS + self.SEQUENCE_BITS)
                | self._node_id << self.SEQUENCE_BITS
                | self._sequence
            )
            return str(value)


_default_generator = SnowflakeIdGenerator()


def generate_id() -> str:
    """Next ID from the module-level generator."""
    return _default_generator.next_id()
