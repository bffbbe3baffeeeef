"""Hierarchy of nodes addressed by integer indices into a single array.

Nodes never hold references to each other: parent and children are indices
into ``Hierarchy.elements``.  The hierarchy is built with ``add_node`` and
``relate``, then walked depth-first as a sequence of Push/Pop operations.

For a hierarchy::

    A -> B -> C0
              C1
         D
         E -> F

``enum_from(A)`` yields::

    Push(A) Push(B) Push(C0) Pop(C0) Push(C1) Pop(C1) Pop(B)
    Push(D) Pop(D) Push(E) Push(F) Pop(F) Pop(E) Pop(A)

A ``Recipe`` records such a walk once so it can be replayed every frame
without touching the tree again.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Generic, Iterable, Iterator, NamedTuple, Optional, TypeVar

T = TypeVar("T")


class OpKind(Enum):
    PUSH = "push"
    POP = "pop"


class NodeEnumOp(NamedTuple):
    """One step of a depth-first walk: entering (PUSH) or leaving (POP) a node."""
    kind: OpKind
    index: int
    has_children: bool

    @classmethod
    def push(cls, index: int, has_children: bool) -> "NodeEnumOp":
        return cls(OpKind.PUSH, index, has_children)

    @classmethod
    def pop(cls, index: int, has_children: bool) -> "NodeEnumOp":
        return cls(OpKind.POP, index, has_children)

    @property
    def is_push(self) -> bool:
        return self.kind is OpKind.PUSH

    @property
    def is_pop(self) -> bool:
        return self.kind is OpKind.POP

    def __repr__(self) -> str:
        name = "Push" if self.is_push else "Pop"
        return f"{name}({self.index}, {self.has_children})"


@dataclass
class Node(Generic[T]):
    """A node in the hierarchy; ``parent`` of None marks a root."""
    data: T
    parent: Optional[int] = None
    children: list[int] = field(default_factory=list)

    @property
    def has_parent(self) -> bool:
        return self.parent is not None

    @property
    def has_children(self) -> bool:
        return len(self.children) > 0


class Hierarchy(Generic[T]):
    """A forest of nodes stored in one array, related by index.

    ``roots`` reflects the last ``find_roots`` call only; structural edits
    do not update it.
    """

    def __init__(self):
        self._elements: list[Node[T]] = []
        self._roots: list[int] = []

    def __len__(self) -> int:
        return len(self._elements)

    def __iter__(self) -> Iterator[T]:
        for e in self._elements:
            yield e.data

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._elements):
            raise IndexError(
                f"Node index {index} out of range for hierarchy of {len(self._elements)}")

    # Construction

    def add_node(self, data: T) -> int:
        """Append a parentless node and return its index."""
        self._elements.append(Node(data))
        return len(self._elements) - 1

    def relate(self, parent: int, child: int) -> None:
        """Record ``child`` as the last child of ``parent``.

        A child may only ever be given one parent, and the relation may not
        close a cycle; both raise ValueError.
        """
        self._check_index(parent)
        self._check_index(child)
        if parent == child:
            raise ValueError(f"Node {child} cannot be its own parent")
        existing = self._elements[child].parent
        if existing is not None:
            raise ValueError(
                f"Node {child} already has parent {existing}; cannot relate to {parent}")
        ancestor: Optional[int] = parent
        while ancestor is not None:
            if ancestor == child:
                raise ValueError(
                    f"Relating {parent} -> {child} would create a cycle")
            ancestor = self._elements[ancestor].parent
        self._elements[parent].children.append(child)
        self._elements[child].parent = parent

    def find_roots(self) -> tuple[int, ...]:
        """Recompute and return the indices of all parentless nodes."""
        self._roots = [i for i, e in enumerate(self._elements) if not e.has_parent]
        return self.roots

    # Access

    @property
    def roots(self) -> tuple[int, ...]:
        return tuple(self._roots)

    @property
    def elements(self) -> tuple[Node[T], ...]:
        return tuple(self._elements)

    def node(self, index: int) -> T:
        self._check_index(index)
        return self._elements[index].data

    def parent_of(self, index: int) -> Optional[int]:
        self._check_index(index)
        return self._elements[index].parent

    def children_of(self, index: int) -> tuple[int, ...]:
        self._check_index(index)
        return tuple(self._elements[index].children)

    def has_children(self, index: int) -> bool:
        self._check_index(index)
        return self._elements[index].has_children

    # Traversal

    def enum_from(self, root: int) -> Iterator[NodeEnumOp]:
        """Depth-first walk from ``root`` as Push/Pop operations.

        Uses an explicit stack, so depth is not limited by recursion.  A leaf
        still yields both its Push and its Pop.
        """
        self._check_index(root)
        elements = self._elements
        yield NodeEnumOp.push(root, elements[root].has_children)
        stack = [(root, iter(elements[root].children))]
        while stack:
            index, children = stack[-1]
            child = next(children, None)
            if child is None:
                stack.pop()
                yield NodeEnumOp.pop(index, elements[index].has_children)
            else:
                yield NodeEnumOp.push(child, elements[child].has_children)
                stack.append((child, iter(elements[child].children)))

    def iter_from(self, root: int) -> Iterator[tuple[NodeEnumOp, T]]:
        """As ``enum_from`` but paired with each node's data."""
        for op in self.enum_from(root):
            yield op, self._elements[op.index].data

    def describe(self, fmt: Callable[[T], str] = str, indent: str = " ") -> str:
        """Indented text dump of every tree, one node per line."""
        lines = []
        for i, e in enumerate(self._elements):
            if e.has_parent:
                continue
            depth = 0
            for op in self.enum_from(i):
                if op.is_push:
                    depth += 1
                    lines.append(indent * depth + fmt(self._elements[op.index].data))
                else:
                    depth -= 1
        return "\n".join(lines) + ("\n" if lines else "")


class Recipe:
    """An immutable, replayable record of a Push/Pop traversal.

    ``max_depth`` is the deepest Push nesting seen, i.e. the number of nodes
    on the longest root-to-leaf chain; it sizes the scratch buffers used when
    the recipe is replayed.
    """

    __slots__ = ("_ops", "_max_depth")

    def __init__(self, ops: Iterable[NodeEnumOp] = ()):
        recorded = []
        depth = 0
        max_depth = 0
        for op in ops:
            if op.is_pop:
                depth -= 1
                if depth < 0:
                    raise ValueError(f"Unbalanced traversal: {op!r} without a matching Push")
            else:
                depth += 1
                max_depth = max(max_depth, depth)
            recorded.append(op)
        if depth != 0:
            raise ValueError(f"Unbalanced traversal: {depth} Push operations never popped")
        self._ops = tuple(recorded)
        self._max_depth = max_depth

    @classmethod
    def of_ops(cls, traversal: Iterable[NodeEnumOp]) -> "Recipe":
        return cls(traversal)

    @property
    def ops(self) -> tuple[NodeEnumOp, ...]:
        return self._ops

    @property
    def max_depth(self) -> int:
        return self._max_depth

    def pushed(self) -> Iterator[int]:
        """Node indices in the order they are first entered."""
        for op in self._ops:
            if op.is_push:
                yield op.index

    def __len__(self) -> int:
        return len(self._ops)

    def __iter__(self) -> Iterator[NodeEnumOp]:
        return iter(self._ops)

    def __repr__(self) -> str:
        return f"Recipe(max_depth={self._max_depth}, ops={len(self._ops)})"
