"""Empty directory hierarchy dataclass."""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Iterator


def path_depth(path: Path | str) -> int:
    """Number of path components counted from the filesystem root."""
    return len(Path(path).parts)


@dataclass(frozen=True, slots=True)
class DirectoryHierarchy:
    """An empty directory together with its empty descendants.

    Every node of the tree is an empty directory.  ``children`` holds the
    direct subdirectories that are themselves empty, sorted by path.
    Trees are plain values: two hierarchies built from the same
    directory layout compare equal.

    Helpers walk the tree with explicit stacks since empty chains can be
    nested deeper than the interpreter's recursion limit.
    """

    path: Path
    depth: int
    children: tuple[DirectoryHierarchy, ...] = ()

    @classmethod
    def leaf(cls, path: Path | str) -> DirectoryHierarchy:
        """Create a hierarchy without children."""
        path = Path(path)
        return cls(path=path, depth=path_depth(path))

    @property
    def name(self) -> str:
        return self.path.name or str(self.path)

    @property
    def folder_count(self) -> int:
        """Total number of directories in this tree, itself included."""
        return sum(1 for _ in self.iter_nodes())

    def iter_nodes(self) -> Iterator[DirectoryHierarchy]:
        """Yield every node of the tree in pre-order."""
        stack: list[DirectoryHierarchy] = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def iter_paths(self) -> Iterator[Path]:
        """Yield every path of the tree in pre-order."""
        for node in self.iter_nodes():
            yield node.path

    def find(self, path: Path | str) -> DirectoryHierarchy | None:
        """Return the node for *path*, or None if it is not in this tree."""
        chain = self._chain_to(Path(path))
        return chain[-1] if chain else None

    def without(self, path: Path | str) -> DirectoryHierarchy:
        """Return a copy with the descendant at *path* pruned away.

        Pruning the node itself is the caller's job; a path that is not
        a strict descendant returns this same object unchanged.
        """
        target = Path(path)
        chain = self._chain_to(target)
        if len(chain) < 2:
            return self

        parent = chain[-2]
        node = replace(parent, children=tuple(c for c in parent.children if c.path != target))
        for ancestor in reversed(chain[:-2]):
            node = replace(
                ancestor,
                children=tuple(node if c.path == node.path else c for c in ancestor.children),
            )
        return node

    def to_dict(self) -> dict[str, Any]:
        root = self._node_dict(self)
        stack: list[tuple[DirectoryHierarchy, dict[str, Any]]] = [(self, root)]
        while stack:
            node, data = stack.pop()
            for child in node.children:
                child_data = self._node_dict(child)
                data["children"].append(child_data)
                stack.append((child, child_data))
        return root

    def _chain_to(self, target: Path) -> list[DirectoryHierarchy]:
        """Nodes from this one down to *target*, or an empty list."""
        ancestors = set(target.parents)
        if target != self.path and self.path not in ancestors:
            return []
        chain: list[DirectoryHierarchy] = [self]
        node = self
        while node.path != target:
            step = next((c for c in node.children if c.path == target or c.path in ancestors), None)
            if step is None:
                return []
            chain.append(step)
            node = step
        return chain

    @staticmethod
    def _node_dict(node: DirectoryHierarchy) -> dict[str, Any]:
        return {"path": str(node.path), "depth": node.depth, "children": []}
