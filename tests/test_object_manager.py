"""ObjectManager directory."""

import pytest

from bleperiph.bt_ref.constants import GATT_SERVICE_INTERFACE
from bleperiph.core.errors import NotFoundError
from bleperiph.dbuslayer.object_manager import ObjectManager
from bleperiph.dbuslayer.introspection import parse_children
from bleperiph.dbuslayer.properties import GattService1Properties

ROOT = "/org/example/om"


@pytest.fixture
def om(conn):
    manager = ObjectManager(ROOT)
    manager.expose(conn)
    return manager


def test_add_and_get(om, conn):
    props = GattService1Properties(UUID="abc")
    om.add_object(ROOT + "/service1", {GATT_SERVICE_INTERFACE: props})

    assert om.get_object(ROOT + "/service1") == {GATT_SERVICE_INTERFACE: props}
    assert om.get_object(ROOT + "/service2") is None
    (added,) = conn.signals_named("InterfacesAdded")
    path, interfaces = added.get_args_list()
    assert str(path) == ROOT + "/service1"
    assert interfaces[GATT_SERVICE_INTERFACE]["UUID"] == "abc"


def test_remove_unknown_path(om):
    with pytest.raises(NotFoundError):
        om.remove_object(ROOT + "/service9")


def test_remove_announces_interfaces(om, conn):
    om.add_object(ROOT + "/service1", {GATT_SERVICE_INTERFACE: GattService1Properties(UUID="abc")})
    om.remove_object(ROOT + "/service1")
    (removed,) = conn.signals_named("InterfacesRemoved")
    path, interfaces = removed.get_args_list()
    assert str(path) == ROOT + "/service1"
    assert list(interfaces) == [GATT_SERVICE_INTERFACE]
    assert om.managed_objects() == {}


def test_get_managed_objects_reflects_current_values(om):
    props = GattService1Properties(UUID="abc")
    om.add_object(ROOT + "/service1", {GATT_SERVICE_INTERFACE: props})
    props.Primary = False

    objects = om.GetManagedObjects()
    assert objects.signature == "oa{sa{sv}}"
    entry = objects[ROOT + "/service1"][GATT_SERVICE_INTERFACE]
    assert entry["UUID"] == "abc"
    assert not entry["Primary"]


def test_snapshot_is_a_copy(om):
    om.add_object(ROOT + "/service1", {GATT_SERVICE_INTERFACE: GattService1Properties()})
    snapshot = om.managed_objects()
    snapshot.clear()
    assert list(om.managed_objects()) == [ROOT + "/service1"]


def test_initial_introspection_has_no_children(om, conn):
    xml = om.Introspect(ROOT, conn)
    assert "org.freedesktop.DBus.ObjectManager" in xml
    assert parse_children(xml) == []


def test_unexpose_releases_the_path(om, conn):
    assert ROOT in conn.exported
    om.unexpose()
    assert ROOT not in conn.exported
    om.unexpose()
