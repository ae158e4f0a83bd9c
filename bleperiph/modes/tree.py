"""Tree mode: list the objects a running peripheral publishes under its root."""
from __future__ import annotations

import argparse
import sys
from typing import List, Optional

import dbus

from bleperiph.bt_ref.constants import INTROSPECT_INTERFACE
from bleperiph.core.log import print_and_log, LOG__GENERAL
from bleperiph.dbuslayer.introspection import parse_children


def list_children(bus, name: str, path: str) -> List[str]:
    """Introspect *path* on *name* and return its child nodes (relative paths)."""
    obj = bus.get_object(name, path)
    xml = dbus.Interface(obj, INTROSPECT_INTERFACE).Introspect()
    return parse_children(str(xml))


def _build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="bleperiph tree", description="Show a peripheral's object tree")
    p.add_argument("name", help="Bus name of the peripheral (e.g. org.bleperiph.app)")
    p.add_argument("path", help="Root object path (e.g. /org/bleperiph/app)")
    return p


def main(argv: Optional[List[str]] = None, bus=None):
    argv = argv if argv is not None else sys.argv[1:]
    args = _build_arg_parser().parse_args(argv)

    bus = bus if bus is not None else dbus.SystemBus()
    try:
        children = list_children(bus, args.name, args.path)
    except dbus.exceptions.DBusException as e:
        print_and_log(f"[-] Introspection of {args.path} failed: {e}", LOG__GENERAL)
        return 1

    print(args.path)
    for child in children:
        print(f"  {args.path.rstrip('/')}/{child}")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
