from __future__ import annotations

from collections.abc import MutableMapping
from typing import Any, Iterator, Optional, Tuple

from rapnoise.core.errors import ValueOutOfRangeError


def compare_keys(x: Tuple[int, ...], y: Tuple[int, ...]) -> int:
    """Shorter keys sort first; equal-length keys compare component by component."""
    if len(x) != len(y):
        return -1 if len(x) < len(y) else 1
    if x == y:
        return 0
    return -1 if x < y else 1


class _Node:
    __slots__ = ("key", "value", "left", "right")

    def __init__(self, key, value):
        self.key = key
        self.value = value
        self.left: Optional[_Node] = None
        self.right: Optional[_Node] = None


class SplayTree(MutableMapping):
    """
    Self-adjusting binary search tree keyed by integer tuples.

    Every lookup, insert or delete splays the touched key to the root, so
    recently used keys sit near the top. ``trim(depth)`` uses that to bound
    size by tree position. Lookups mutate the tree, so callers that share
    an instance across threads must serialize access.
    """

    def __init__(self):
        self._root: Optional[_Node] = None
        self._count = 0

    def __len__(self) -> int:
        return self._count

    def _nodes(self) -> Iterator[_Node]:
        stack = []
        node = self._root
        while stack or node is not None:
            while node is not None:
                stack.append(node)
                node = node.left
            node = stack.pop()
            yield node
            node = node.right

    def __iter__(self) -> Iterator:
        return iter([node.key for node in self._nodes()])

    # Snapshots: a lookup per key would splay the tree mid-walk
    def items(self):
        return [(node.key, node.value) for node in self._nodes()]

    def values(self):
        return [node.value for node in self._nodes()]

    def __contains__(self, key) -> bool:
        if self._root is None:
            return False
        self._splay(key)
        return compare_keys(key, self._root.key) == 0

    def __getitem__(self, key):
        if self._root is None:
            raise KeyError(key)
        self._splay(key)
        if compare_keys(key, self._root.key) != 0:
            raise KeyError(key)
        return self._root.value

    def __setitem__(self, key, value) -> None:
        if self._root is None:
            self._root = _Node(key, value)
            self._count = 1
            return

        self._splay(key)
        c = compare_keys(key, self._root.key)
        if c == 0:
            self._root.value = value
            return

        node = _Node(key, value)
        if c < 0:
            node.left = self._root.left
            node.right = self._root
            self._root.left = None
        else:
            node.right = self._root.right
            node.left = self._root
            self._root.right = None
        self._root = node
        self._count += 1

    def __delitem__(self, key) -> None:
        if self._root is None:
            raise KeyError(key)
        self._splay(key)
        if compare_keys(key, self._root.key) != 0:
            raise KeyError(key)

        if self._root.left is None:
            self._root = self._root.right
        else:
            right = self._root.right
            self._root = self._root.left
            # key is larger than everything left, so this lifts the maximum
            self._splay(key)
            self._root.right = right
        self._count -= 1

    def clear(self) -> None:
        self._root = None
        self._count = 0

    @property
    def root_key(self) -> Any:
        return None if self._root is None else self._root.key

    def height(self) -> int:
        """Number of levels in the tree (0 when empty)."""
        best = 0
        stack = [(self._root, 1)] if self._root is not None else []
        while stack:
            node, level = stack.pop()
            best = max(best, level)
            if node.left is not None:
                stack.append((node.left, level + 1))
            if node.right is not None:
                stack.append((node.right, level + 1))
        return best

    def trim(self, depth: int) -> int:
        """
        Drop every node ``depth`` or more edges below the root.

        ``trim(0)`` empties the tree; ``trim(d)`` keeps at most ``d`` levels.
        Returns the number of entries retained.
        """
        if depth < 0:
            raise ValueOutOfRangeError("The trim depth must not be negative.")
        if self._root is None:
            return 0
        if depth == 0:
            self.clear()
            return 0

        kept = 0
        stack = [(self._root, 0)]
        while stack:
            node, level = stack.pop()
            kept += 1
            if level == depth - 1:
                node.left = None
                node.right = None
                continue
            if node.left is not None:
                stack.append((node.left, level + 1))
            if node.right is not None:
                stack.append((node.right, level + 1))
        self._count = kept
        return kept

    def _splay(self, key) -> None:
        # Top-down splay; ``header`` collects the left and right trees
        header = _Node(None, None)
        left = right = header
        t = self._root
        while True:
            c = compare_keys(key, t.key)
            if c < 0:
                if t.left is None:
                    break
                if compare_keys(key, t.left.key) < 0:
                    y = t.left
                    t.left = y.right
                    y.right = t
                    t = y
                    if t.left is None:
                        break
                right.left = t
                right = t
                t = t.left
            elif c > 0:
                if t.right is None:
                    break
                if compare_keys(key, t.right.key) > 0:
                    y = t.right
                    t.right = y.left
                    y.left = t
                    t = y
                    if t.right is None:
                        break
                left.right = t
                left = t
                t = t.right
            else:
                break

        left.right = t.left
        right.left = t.right
        t.left = header.right
        t.right = header.left
        self._root = t
