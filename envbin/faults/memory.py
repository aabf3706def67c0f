"""Append-only pool of committed memory blocks."""

import logging
import mmap
import threading

logger = logging.getLogger(__name__)

TOUCH_BYTE = 69


class AllocationPool:
    """
    Grows on request and never shrinks.

    Each block is written once per page when it is created so the memory
    is physically committed rather than just reserved.
    """

    def __init__(self, page_size=mmap.PAGESIZE):
        self.page_size = page_size
        self._blocks = []
        self._total = 0
        self._lock = threading.Lock()

    def __len__(self):
        with self._lock:
            return len(self._blocks)

    @property
    def total_bytes(self):
        with self._lock:
            return self._total

    def allocate(self, nbytes):
        """
        Allocate, touch and keep a block of nbytes.

        :param nbytes: Block size in bytes
        :return: Total bytes held by the pool afterwards
        """
        if nbytes < 0:
            raise ValueError("cannot allocate a negative number of bytes")

        block = bytearray(nbytes)
        pages = len(range(0, nbytes, self.page_size))
        block[::self.page_size] = bytes((TOUCH_BYTE,)) * pages

        with self._lock:
            self._blocks.append(block)
            self._total += nbytes
            total = self._total

        logger.info(
            "Memory allocated",
            extra={"bytes": nbytes, "pool_bytes": total},
        )

        return total
