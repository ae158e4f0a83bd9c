"""Routing of BlueZ value requests to the user callbacks."""

import pytest

from bleperiph.bt_ref.constants import (
    CALLBACK_FUNCTION_ERROR,
    CALLBACK_NOT_REGISTERED,
    GATT_CHARACTERISTIC_INTERFACE,
    GATT_DESCRIPTOR_INTERFACE,
)
from bleperiph.bt_ref.exceptions import (
    FailedException,
    InvalidOffsetException,
    NotSupportedException,
)
from bleperiph.core.errors import CallbackError
from bleperiph.dbuslayer.application import Application
from bleperiph.dbuslayer.properties import (
    GattCharacteristic1Properties,
    GattDescriptor1Properties,
    GattService1Properties,
)


def _tree(app, value=b"stored"):
    service = app.create_service(GattService1Properties(UUID="svc"))
    char = service.create_characteristic(
        GattCharacteristic1Properties(UUID="chr", Flags=["read", "write", "notify"], Value=value)
    )
    desc = char.create_descriptor(GattDescriptor1Properties(UUID="dsc", Value=b"desc"))
    char.add_descriptor(desc)
    service.add_characteristic(char)
    app.add_service(service)
    return service, char, desc


def test_empty_slots_report_not_registered(app):
    for call in (
        lambda: app.handle_read("s", "c"),
        lambda: app.handle_write("s", "c", b"x"),
        lambda: app.handle_descriptor_read("s", "c", "d"),
        lambda: app.handle_descriptor_write("s", "c", "d", b"x"),
    ):
        with pytest.raises(CallbackError) as info:
            call()
        assert info.value.code == CALLBACK_NOT_REGISTERED
        assert info.value.message == "No callback registered."


def test_callbacks_receive_app_and_uuids(config):
    seen = []
    config.read_func = lambda app, s, c: seen.append(("read", app, s, c)) or b"\x01\x02"
    config.write_func = lambda app, s, c, v: seen.append(("write", app, s, c, v))
    config.desc_read_func = lambda app, s, c, d: b"\x03"
    config.desc_write_func = lambda app, s, c, d, v: seen.append(("dwrite", s, c, d, v))
    app = Application(config)

    assert app.handle_read("s", "c") == b"\x01\x02"
    app.handle_write("s", "c", b"\xff")
    assert app.handle_descriptor_read("s", "c", "d") == b"\x03"
    app.handle_descriptor_write("s", "c", "d", b"\x00")

    assert seen == [
        ("read", app, "s", "c"),
        ("write", app, "s", "c", b"\xff"),
        ("dwrite", "s", "c", "d", b"\x00"),
    ]


def test_raising_callback_becomes_function_error(config):
    def broken(app, s, c):
        raise RuntimeError("sensor offline")

    config.read_func = broken
    app = Application(config)
    with pytest.raises(CallbackError) as info:
        app.handle_read("s", "c")
    assert info.value.code == CALLBACK_FUNCTION_ERROR
    assert info.value.message == "sensor offline"


def test_callback_error_maps_to_bluez_faults():
    assert isinstance(CallbackError(CALLBACK_NOT_REGISTERED, "x").to_dbus_error(), NotSupportedException)
    fault = CallbackError(CALLBACK_FUNCTION_ERROR, "bad").to_dbus_error()
    assert isinstance(fault, FailedException)
    assert fault.get_dbus_name() == "org.bluez.Error.Failed"


def test_read_value_uses_callback_and_offset(config):
    config.read_func = lambda app, s, c: b"abcdef"
    app = Application(config)
    _, char, _ = _tree(app)

    assert bytes(char.ReadValue({})) == b"abcdef"
    assert bytes(char.ReadValue({"offset": 2})) == b"cdef"


def test_read_value_falls_back_to_stored_value(app):
    _, char, desc = _tree(app)
    assert bytes(char.ReadValue({})) == b"stored"
    assert bytes(desc.ReadValue({})) == b"desc"


def test_read_value_failure_is_reported_as_failed(config):
    def broken(app, s, c):
        raise ValueError("nope")

    config.read_func = broken
    app = Application(config)
    _, char, _ = _tree(app)
    with pytest.raises(FailedException):
        char.ReadValue({})


def test_write_value_without_callback_stores_value(app):
    _, char, desc = _tree(app)
    char.WriteValue([0x10, 0x20], {})
    desc.WriteValue([0x30], {})
    assert char.get_property(GATT_CHARACTERISTIC_INTERFACE, "Value") == b"\x10\x20"
    assert desc.get_property(GATT_DESCRIPTOR_INTERFACE, "Value") == b"\x30"


def test_write_value_with_callback_leaves_value_alone(config):
    written = []
    config.write_func = lambda app, s, c, v: written.append((s, c, v))
    app = Application(config)
    _, char, _ = _tree(app)

    char.WriteValue([0x01], {})
    assert written == [("svc", "chr", b"\x01")]
    assert char.value() == b"stored"


def test_descriptor_dispatch_passes_all_three_uuids(config):
    seen = []
    config.desc_read_func = lambda app, s, c, d: seen.append((s, c, d)) or b"ok"
    app = Application(config)
    _, _, desc = _tree(app)
    assert bytes(desc.ReadValue({})) == b"ok"
    assert seen == [("svc", "chr", "dsc")]


def test_notifications_only_announce_while_notifying(running_app, conn):
    _, char, _ = _tree(running_app)
    conn.signals.clear()

    char.update_value(b"\x01")
    assert conn.signals_named("PropertiesChanged") == []

    char.StartNotify()
    assert char.notifying()
    char.StartNotify()
    char.update_value(b"\x02")

    changed = [m.get_args_list()[1] for m in conn.signals_named("PropertiesChanged")]
    assert [list(c.keys()) for c in changed] == [["Notifying"], ["Value"]]
    assert bytes(changed[1]["Value"]) == b"\x02"

    char.StopNotify()
    assert not char.notifying()
    conn.signals.clear()
    char.update_value(b"\x03")
    assert conn.signals_named("PropertiesChanged") == []
    assert char.value() == b"\x03"


@pytest.mark.parametrize("payload", [None, "text"])
def test_read_callback_returning_non_bytes_is_a_failure(config, payload):
    config.read_func = lambda app, s, c: payload
    config.desc_read_func = lambda app, s, c, d: payload
    app = Application(config)
    _, char, desc = _tree(app)
    with pytest.raises(FailedException):
        char.ReadValue({})
    with pytest.raises(FailedException):
        desc.ReadValue({})


def test_read_callback_may_return_a_byte_list(config):
    config.read_func = lambda app, s, c: [0x01, 0x02]
    app = Application(config)
    _, char, _ = _tree(app)
    assert bytes(char.ReadValue({})) == b"\x01\x02"


def test_read_offset_past_the_end_is_rejected(app):
    _, char, desc = _tree(app)
    assert bytes(char.ReadValue({"offset": 6})) == b""
    with pytest.raises(InvalidOffsetException):
        char.ReadValue({"offset": 7})
    with pytest.raises(InvalidOffsetException):
        desc.ReadValue({"offset": 5})
