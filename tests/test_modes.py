"""Serve/tree run-modes (without a main loop)."""

import re

import pytest

from bleperiph.bt_ref.constants import GATT_DESCRIPTOR_INTERFACE
from bleperiph.core.config import parse_peripheral_config
from bleperiph.dbuslayer.introspection import TreeExporter
from bleperiph.modes import tree

from conftest import APP_NAME, APP_PATH

UUID_128 = re.compile(r"[0-9A-Fa-f]{8}-[0-9A-Fa-f]{4}-[0-9A-Fa-f]{4}-[0-9A-Fa-f]{4}-[0-9A-Fa-f]{12}")


def test_build_application_from_config(conn):
    serve = pytest.importorskip("bleperiph.modes.serve")
    config, services = parse_peripheral_config({
        "path": APP_PATH,
        "services": [{
            "uuid": "180D",
            "advertised": True,
            "characteristics": [{
                "uuid": "2A37",
                "descriptors": [{"uuid": "2901", "value": "bpm"}],
            }],
        }],
    })
    config.bus = conn

    app = serve.build_application(config, services)

    (service,) = app.services().values()
    assert service.uuid() == "0000180D-0000-1000-8000-00805F9B34FB"
    for node in service.walk():
        assert UUID_128.fullmatch(node.uuid()), node.uuid()
    assert service.advertised()
    (char,) = service.characteristics().values()
    (desc,) = char.descriptors().values()
    assert str(desc.path()) == APP_PATH + "/service1/char1/desc1"
    assert desc.get_property(GATT_DESCRIPTOR_INTERFACE, "Value") == b"bpm"
    assert app.object_manager().exposed
    assert len(conn.signals_named("InterfacesAdded")) == 3
    assert set(app.object_manager().managed_objects()) == {
        str(service.path()), str(char.path()), str(desc.path()),
    }


def test_tree_lists_children(conn):
    paths = [APP_PATH + "/service1", APP_PATH + "/service1/char1"]
    conn.replies["Introspect"] = TreeExporter(APP_PATH).render(paths)

    assert tree.list_children(conn, APP_NAME, APP_PATH) == ["service1", "service1/char1"]
    (call,) = conn.calls_named("Introspect")
    assert call[0] == APP_PATH


def test_tree_main_prints_paths(conn, capsys):
    conn.replies["Introspect"] = TreeExporter(APP_PATH).render([APP_PATH + "/service1"])
    assert tree.main([APP_NAME, APP_PATH], bus=conn) == 0
    out = capsys.readouterr().out.splitlines()
    assert out == [APP_PATH, f"  {APP_PATH}/service1"]
