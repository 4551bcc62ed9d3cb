"""Document node capability and an adapter over JSON-compatible data."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from enum import StrEnum
from typing import Protocol, TypeAlias, runtime_checkable


ScalarValue: TypeAlias = str | int | float | bool | None


class NodeKind(StrEnum):
    """Structural kind of a document node."""

    SCALAR = "scalar"
    SEQUENCE = "sequence"
    MAPPING = "mapping"


class ScalarKind(StrEnum):
    """Kind tag of a scalar value, used to decide comparability."""

    STRING = "string"
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    NULL = "null"


@runtime_checkable
class Node(Protocol):
    """Capability the matcher needs from a document tree node.

    Matches are returned as the very node objects exposed here, so
    implementations should hand out the same child object for the same
    position on every call.
    """

    @property
    def kind(self) -> NodeKind:
        """Structural kind of the node."""
        ...

    def items(self) -> Sequence[Node]:
        """Ordered children of a sequence node, empty otherwise."""
        ...

    def pairs(self) -> Sequence[tuple[str, Node]]:
        """Ordered key/value pairs of a mapping node, empty otherwise."""
        ...

    def scalar(self) -> tuple[ScalarKind, ScalarValue]:
        """Kind-tagged value of a scalar node."""
        ...


class DataNode:
    """Node adapter over dicts, lists and scalars as produced by `json.load`.

    The whole tree of adapters is built when the root is wrapped and never
    changes afterwards, so every position in the wrapped data corresponds to
    exactly one `DataNode`, also when several threads query the same tree.
    """

    __slots__ = ("_by_key", "_items", "_pairs", "key", "parent", "value")

    def __init__(
        self,
        value: object,
        parent: DataNode | None = None,
        key: str | int | None = None,
    ) -> None:
        self._assign(value, parent, key)
        pending = [self]
        while pending:
            node = pending.pop()
            node._attach_children()
            pending.extend(node._items)
            pending.extend(child for _key, child in node._pairs)

    @classmethod
    def _unbuilt(cls, value: object, parent: DataNode, key: str | int) -> DataNode:
        node = cls.__new__(cls)
        node._assign(value, parent, key)
        return node

    def _assign(self, value: object, parent: DataNode | None, key: str | int | None) -> None:
        self.value = value
        self.parent = parent
        self.key = key
        self._items: tuple[DataNode, ...] = ()
        self._pairs: tuple[tuple[str, DataNode], ...] = ()
        self._by_key: dict[str, DataNode] = {}

    def _attach_children(self) -> None:
        value = self.value
        if isinstance(value, Mapping):
            self._pairs = tuple(
                (str(key), DataNode._unbuilt(child, self, key)) for key, child in value.items()
            )
            for name, child in self._pairs:
                self._by_key.setdefault(name, child)
        elif isinstance(value, list | tuple):
            self._items = tuple(
                DataNode._unbuilt(child, self, index) for index, child in enumerate(value)
            )

    def __repr__(self) -> str:
        return f"DataNode({self.location}={self.value!r})"

    @property
    def kind(self) -> NodeKind:
        if isinstance(self.value, Mapping):
            return NodeKind.MAPPING
        if isinstance(self.value, list | tuple):
            return NodeKind.SEQUENCE
        return NodeKind.SCALAR

    def items(self) -> tuple[DataNode, ...]:
        return self._items

    def pairs(self) -> tuple[tuple[str, DataNode], ...]:
        return self._pairs

    def child(self, name: str) -> DataNode | None:
        """Mapping child under `name`, without scanning the pairs."""
        return self._by_key.get(name)

    def scalar(self) -> tuple[ScalarKind, ScalarValue]:
        value = self.value
        if value is None:
            return (ScalarKind.NULL, None)
        if isinstance(value, bool):
            return (ScalarKind.BOOL, value)
        if isinstance(value, int):
            return (ScalarKind.INT, value)
        if isinstance(value, float):
            return (ScalarKind.FLOAT, value)
        return (ScalarKind.STRING, str(value))

    @property
    def location(self) -> str:
        """Normalized path of this node from the wrapped root, e.g. `$['a'][0]`."""
        segments: list[str] = []
        node: DataNode | None = self
        while node is not None and node.parent is not None:
            if isinstance(node.key, int):
                segments.append(f"[{node.key}]")
            else:
                segments.append(f"['{node.key}']")
            node = node.parent
        return "$" + "".join(reversed(segments))


def as_node(document: object) -> Node:
    """Return `document` itself if it is a node, otherwise wrap it in a `DataNode`."""
    if isinstance(document, Node):
        return document
    return DataNode(document)
