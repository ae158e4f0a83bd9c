"""Serve mode: publish a GATT peripheral described by a YAML file.

The tree is built from the peripheral config, exposed on the system bus,
registered with ``GattManager1`` and (optionally) advertised until the
timeout expires or SIGINT is received.
"""
from __future__ import annotations

import argparse
import signal
import sys
from typing import List, Optional

from gi.repository import GLib

from bleperiph.core.config import (
    DEFAULT_ADAPTER,
    ApplicationConfig,
    ServiceDefinition,
    init_mainloop,
    load_peripheral_config,
)
from bleperiph.core.errors import PeripheralError
from bleperiph.core.log import print_and_log, LOG__GENERAL
from bleperiph.dbuslayer.application import Application
from bleperiph.dbuslayer.properties import (
    GattCharacteristic1Properties,
    GattDescriptor1Properties,
    GattService1Properties,
)


def build_application(config: ApplicationConfig, services: List[ServiceDefinition]) -> Application:
    """Create and expose an Application, then add every configured service.

    The ObjectManager root is exported before the first service so BlueZ sees
    an InterfacesAdded for each node.
    """
    app = Application(config)
    app.run()
    for definition in services:
        service = app.create_service(
            GattService1Properties(UUID=app.generate_uuid(definition.uuid), Primary=definition.primary),
            advertised=definition.advertised,
        )
        for char_def in definition.characteristics:
            char = service.create_characteristic(
                GattCharacteristic1Properties(
                    UUID=app.generate_uuid(char_def.uuid),
                    Flags=list(char_def.flags),
                    Value=char_def.value,
                )
            )
            for desc_def in char_def.descriptors:
                desc = char.create_descriptor(
                    GattDescriptor1Properties(
                        UUID=app.generate_uuid(desc_def.uuid),
                        Flags=list(desc_def.flags),
                        Value=desc_def.value,
                    )
                )
                char.add_descriptor(desc)
            service.add_characteristic(char)
        app.add_service(service)
    return app


def _teardown(app: Application) -> bool:
    try:
        app.shutdown()
    except PeripheralError as e:
        print_and_log(f"[-] {e}", LOG__GENERAL)
        return False
    return True


def _build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="bleperiph serve", description="Publish a GATT peripheral")
    p.add_argument("--config", help="Peripheral YAML file (default: $BLEPERIPH_CONFIG or ~/.config/bleperiph/peripheral.yaml)")
    p.add_argument("--adapter", default=DEFAULT_ADAPTER, help="Adapter to register with (default hci0)")
    p.add_argument("--no-advertise", action="store_true", help="Do not register an LE advertisement")
    p.add_argument("--timeout", type=int, default=0, help="Stop after N seconds (0 = run until Ctrl+C)")
    return p


def main(argv: Optional[List[str]] = None):
    """Run the serve mode CLI."""
    argv = argv if argv is not None else sys.argv[1:]
    args = _build_arg_parser().parse_args(argv)

    try:
        config, services = load_peripheral_config(args.config)
    except PeripheralError as e:
        print_and_log(f"[-] {e}", LOG__GENERAL)
        return 1

    init_mainloop()

    app = None
    try:
        app = build_application(config, services)
        app.register_application(args.adapter)
        if not args.no_advertise:
            app.start_advertising(args.adapter)
    except PeripheralError as e:
        print_and_log(f"[-] Failed to start peripheral: {e}", LOG__GENERAL)
        if app is not None:
            _teardown(app)
        return 1

    loop = GLib.MainLoop()

    def _sigint(_sig, _frm):
        print_and_log("[!] SIGINT received - shutting down", LOG__GENERAL)
        loop.quit()

    signal.signal(signal.SIGINT, _sigint)
    if args.timeout > 0:
        GLib.timeout_add_seconds(args.timeout, lambda: loop.quit() or False)

    rc = 0
    try:
        print_and_log(f"[*] Peripheral {config.object_name} running, press Ctrl+C to exit", LOG__GENERAL)
        loop.run()
    finally:
        try:
            app.unregister_application(args.adapter)
        except PeripheralError as e:
            print_and_log(f"[-] {e}", LOG__GENERAL)
            rc = 1
        if not _teardown(app):
            rc = 1
        print_and_log("[*] Peripheral loop exited", LOG__GENERAL)
    return rc


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
