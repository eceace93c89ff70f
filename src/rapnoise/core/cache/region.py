from __future__ import annotations

import threading
from typing import Callable, Optional, Sequence

from rapnoise.core.lattice.cell import LatticeCell, Location
from rapnoise.utils.logging import get_logger

from .splay import SplayTree

logger = get_logger(__name__)


class RegionCache:
    """
    Memoizes lattice cells by location.

    All access goes through one lock, so a miss builds and inserts a cell
    exactly once even when several threads ask for it together. When
    ``max_depth`` is set, the tree is trimmed to that depth after every
    insert; entries are otherwise only dropped by an explicit ``trim``.
    """

    def __init__(self, builder: Callable[[Location], LatticeCell], max_depth: Optional[int] = None):
        self._builder = builder
        self._tree = SplayTree()
        self._lock = threading.Lock()
        self.max_depth = max_depth
        self.builds = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._tree)

    def __contains__(self, location: Sequence[int]) -> bool:
        key = tuple(location)
        with self._lock:
            return any(k == key for k in self._tree)

    def get_or_build(self, location: Sequence[int]) -> LatticeCell:
        key = tuple(int(c) for c in location)
        with self._lock:
            cell = self._tree.get(key)
            if cell is None:
                logger.debug("Building lattice cell location=%s", key)
                cell = self._builder(key)
                self._tree[key] = cell
                self.builds += 1
                if self.max_depth is not None:
                    self._trim_locked(self.max_depth)
            return cell

    def trim(self, depth: int) -> int:
        """Drop entries ``depth`` or more levels below the root; return how many remain."""
        with self._lock:
            return self._trim_locked(depth)

    def clear(self) -> None:
        with self._lock:
            self._tree.clear()

    def _trim_locked(self, depth: int) -> int:
        before = len(self._tree)
        kept = self._tree.trim(depth)
        if kept != before:
            logger.debug("Trimmed region cache depth=%d dropped=%d retained=%d", depth, before - kept, kept)
        return kept
