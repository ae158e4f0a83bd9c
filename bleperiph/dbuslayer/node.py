"""Shared behaviour of the service / characteristic / descriptor objects."""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Dict, Iterator, Optional, Tuple

from bleperiph.bt_ref.constants import CALLBACK_FUNCTION_ERROR
from bleperiph.bt_ref.exceptions import InvalidOffsetException
from bleperiph.core.errors import CallbackError
from bleperiph.dbuslayer.properties import PropertyStruct, PropertyTable, to_dbus_value

if TYPE_CHECKING:  # pragma: no cover
    from bleperiph.dbuslayer.application import Application

__all__ = ["GattNode"]


class GattNode(PropertyTable):
    """One node of the GATT tree.

    A node knows its application (for dispatch and publication), its parent
    (only to derive paths and parent references) and its children, keyed by
    their allocated sub-path.  Child indices only ever grow.
    """

    def __init__(self, app: "Application", parent: Optional["GattNode"], path: str,
                 index: int, properties: PropertyStruct, **links):
        super().__init__(path)
        self._app = app
        self._parent = parent
        self._index = index
        # each node owns its struct, so one template can back many nodes
        self._props = copy.deepcopy(properties)
        for name, value in links.items():
            setattr(self._props, name, value)
        self._children: Dict[str, GattNode] = {}
        self._child_index = 0

    def application(self) -> "Application":
        return self._app

    def parent(self) -> Optional["GattNode"]:
        return self._parent

    def index(self) -> int:
        return self._index

    def uuid(self) -> str:
        return self._props.UUID

    def interface(self) -> str:
        return self._props.INTERFACE

    def properties(self) -> Dict[str, PropertyStruct]:
        return {self._props.INTERFACE: self._props}

    def walk(self) -> Iterator["GattNode"]:
        """This node, then every descendant, parents before children."""
        yield self
        for child in list(self._children.values()):
            yield from child.walk()

    # ------------------------------------------------------------------
    # Children
    # ------------------------------------------------------------------
    def _allocate_child_path(self, prefix: str) -> Tuple[str, int]:
        with self._app.lock:
            self._child_index += 1
            return f"{self._path}/{prefix}{self._child_index}", self._child_index

    def _add_child(self, child: "GattNode") -> None:
        if child.parent() is not self:
            raise ValueError(f"{child.path()} was not created by {self._path}")
        with self._app.lock:
            if str(child.path()) in self._children:
                return
            live = self.exposed
            if live:
                # export first so a failure leaves this node untouched
                self._app._export_subtree(child)
            self._children[str(child.path())] = child
            self._children_changed()
            if live:
                self._app._register_subtree(child)
                self._app.export_tree()

    def _remove_child(self, child: "GattNode") -> None:
        with self._app.lock:
            if str(child.path()) not in self._children:
                return
            del self._children[str(child.path())]
            self._children_changed()
            if child.exposed:
                self._app._withdraw_subtree(child)
                self._app.export_tree()

    def _children_changed(self) -> None:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # ReadValue replies
    # ------------------------------------------------------------------
    def _read_reply(self, value, options):
        """Turn a read payload into the ``ay`` reply, honouring the ``offset`` option."""
        if value is None or isinstance(value, str):
            error = CallbackError(
                CALLBACK_FUNCTION_ERROR,
                f"Read of {self._path} returned {type(value).__name__}, expected bytes",
            )
            raise error.to_dbus_error()
        try:
            data = bytes(value)
        except (TypeError, ValueError) as e:
            raise CallbackError(CALLBACK_FUNCTION_ERROR, str(e)).to_dbus_error() from e
        offset = int(options.get("offset", 0))
        if offset < 0 or offset > len(data):
            raise InvalidOffsetException(f"Offset {offset} is beyond the {len(data)} byte value of {self._path}")
        return to_dbus_value(data[offset:], "ay")
