"""Introspection XML for the exported tree.

The root object's XML is rebuilt from scratch on every membership change:
``TreeExporter`` lists every live service/characteristic/descriptor path as a
child node, so a daemon re-introspecting the root always sees the exact tree.
Per-object XML produced by dbus-python is enriched with ``<property>``
declarations by :func:`declare_properties`.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List

import xmltodict

from bleperiph.bt_ref.constants import (
    DBUS_OM_IFACE,
    INTROSPECT_DOCTYPE,
    INTROSPECT_INTERFACE,
)
from bleperiph.bt_ref.utils import relative_path

__all__ = ["TreeExporter", "declare_properties", "parse_children", "render"]

# Tags that may repeat inside introspection data (never the root <node>)
_LIST_TAGS = ("interface", "method", "signal", "property", "arg", "node")


def _force_list(path, key, value):
    return bool(path) and key in _LIST_TAGS


_INTROSPECTABLE_DATA = {
    "@name": INTROSPECT_INTERFACE,
    "method": [
        {
            "@name": "Introspect",
            "arg": [{"@name": "xml_data", "@type": "s", "@direction": "out"}],
        }
    ],
}

_OBJECT_MANAGER_DATA = {
    "@name": DBUS_OM_IFACE,
    "method": [
        {
            "@name": "GetManagedObjects",
            "arg": [{"@name": "objects", "@type": "a{oa{sa{sv}}}", "@direction": "out"}],
        }
    ],
    "signal": [
        {
            "@name": "InterfacesAdded",
            "arg": [
                {"@name": "object", "@type": "o"},
                {"@name": "interfaces", "@type": "a{sa{sv}}"},
            ],
        },
        {
            "@name": "InterfacesRemoved",
            "arg": [
                {"@name": "object", "@type": "o"},
                {"@name": "interfaces", "@type": "as"},
            ],
        },
    ],
}


def render(document: Dict[str, Any]) -> str:
    return INTROSPECT_DOCTYPE + xmltodict.unparse(document, full_document=False, pretty=True) + "\n"


def _parse(xml: str) -> Dict[str, Any]:
    document = xmltodict.parse(xml, force_list=_force_list)
    if document.get("node") is None:
        document["node"] = {}
    return document


def parse_children(xml: str) -> List[str]:
    """Child node names declared by an introspection document."""
    node = _parse(xml)["node"]
    return [child["@name"] for child in node.get("node", []) if child and "@name" in child]


def declare_properties(xml: str, structs: Dict[str, Any]) -> str:
    """Add ``<property>`` elements for every struct to dbus-python's XML."""
    document = _parse(xml)
    node = document["node"]
    interfaces = node.setdefault("interface", [])
    for name, struct in structs.items():
        entry = next((i for i in interfaces if i.get("@name") == name), None)
        if entry is None:
            entry = {"@name": name}
            interfaces.append(entry)
        entry["property"] = [
            {"@name": prop_name, "@type": signature, "@access": access}
            for prop_name, signature, access in struct.declarations()
        ]
    # child nodes go after interfaces
    if "node" in node:
        node["node"] = node.pop("node")
    return render(document)


class TreeExporter:
    """Builds the application root's introspection from the live path set."""

    def __init__(self, root_path: str):
        self.root_path = root_path

    def children(self, paths: Iterable[str]) -> List[str]:
        return [relative_path(str(p), self.root_path) for p in paths]

    def build(self, paths: Iterable[str]) -> Dict[str, Any]:
        node: Dict[str, Any] = {
            "interface": [_INTROSPECTABLE_DATA, _OBJECT_MANAGER_DATA],
        }
        children = self.children(paths)
        if children:
            node["node"] = [{"@name": name} for name in children]
        return {"node": node}

    def render(self, paths: Iterable[str]) -> str:
        return render(self.build(paths))
