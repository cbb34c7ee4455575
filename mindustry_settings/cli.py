"""Command line interface for the Mindustry settings editor."""

from __future__ import annotations

import argparse
import logging
import os
import time
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from . import __version__
from .codec import Entry
from .errors import DecodeError, EncodeError, SettingsError
from .log_utils import setup_cli_logging
from .paths import ENV_SETTINGS_PATH, default_settings_path
from .settings import SettingsStore
from .values import format_value

logger = logging.getLogger(__name__)

Op = Tuple[str, ...]


class _AppendOp(argparse.Action):
    """Collect --read / --write into one list so they run in command line order."""

    def __init__(self, option_strings, dest, op: str, **kwargs):
        self.op = op
        super().__init__(option_strings, dest, **kwargs)

    def __call__(self, parser, namespace, values, option_string=None):
        ops = list(getattr(namespace, self.dest, None) or [])
        if isinstance(values, str):
            values = [values]
        ops.append((self.op, *values))
        setattr(namespace, self.dest, ops)


def render_entry(entry: Entry) -> str:
    value = format_value(entry.value_type, entry.value)
    return f"{entry.name}={value}@[addr:{entry.offset:X}] ({entry.value_type.label})"


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="mindustry-settings",
        description="Inspect and edit Mindustry's settings.bin.",
        epilog=(
            "--read and --write may be repeated and run in the order given. "
            'Booleans accept exactly "true" or "false"; binary values are written as hex.'
        ),
    )
    ap.add_argument(
        "path",
        nargs="?",
        default=None,
        help=f"Path to settings.bin (default: ${ENV_SETTINGS_PATH} or the game's data folder)",
    )
    ap.add_argument("--show-all", action="store_true", help="Print every key, type, value and address")
    ap.add_argument(
        "-r", "--read",
        dest="ops",
        action=_AppendOp,
        op="read",
        metavar="NAME",
        help="Print the value and byte address of NAME",
    )
    ap.add_argument(
        "-w", "--write",
        dest="ops",
        action=_AppendOp,
        op="write",
        nargs=2,
        metavar=("NAME", "VALUE"),
        help="Set NAME to VALUE (parsed as the entry's existing type)",
    )
    ap.add_argument(
        "--pretend",
        action="store_true",
        help="Apply writes in memory only; the file on disk is not modified",
    )
    ap.add_argument(
        "--backup",
        action="store_true",
        help="Copy the original file to <file>.bak.<timestamp> before overwriting it",
    )
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    ap.set_defaults(ops=[])
    return ap


def _run_ops(store: SettingsStore, ops: Sequence[Op]) -> int:
    failures = 0
    for op in ops:
        kind, name = op[0], op[1]
        try:
            if kind == "read":
                print(render_entry(store.get(name)))
            else:
                store.set(name, op[2])
                logger.info("set %s", render_entry(store.get(name)))
        except SettingsError as exc:
            logger.error("%s", exc)
            failures += 1
    return failures


def _write_atomic(path: Path, data: bytes, backup: bool) -> None:
    if backup:
        ts = time.strftime("%Y%m%d_%H%M%S")
        bak = path.with_name(f"{path.name}.bak.{ts}")
        bak.write_bytes(path.read_bytes())
        logger.info("backup written to %s", bak)

    tmp = path.with_name(path.name + ".tmp")
    try:
        with open(tmp, "wb") as f:
            f.write(data)
        os.replace(tmp, path)
    except OSError:
        tmp.unlink(missing_ok=True)
        raise


def main(argv: Optional[List[str]] = None) -> int:
    ap = _build_parser()
    args = ap.parse_args(argv)

    if not args.ops and not args.show_all:
        ap.print_help()
        return 0

    setup_cli_logging(args.verbose)

    path = Path(args.path).expanduser() if args.path else default_settings_path()
    try:
        with open(path, "rb") as f:
            original = f.read()
        store = SettingsStore.load(original)
    except OSError as exc:
        logger.error("cannot read %s: %s", path, exc.strerror or exc)
        return 1
    except DecodeError as exc:
        logger.error("%s is not a valid settings file: %s", path, exc)
        return 1
    logger.debug("read %d settings from %s", len(store), path)

    if args.show_all:
        for entry in store.get_all():
            print(render_entry(entry))

    failures = _run_ops(store, args.ops)

    if store.dirty:
        try:
            data = store.commit(pretend=args.pretend)
        except EncodeError as exc:
            logger.error("cannot encode settings: %s", exc)
            return 1

        if args.pretend:
            state = "differs from" if data != original else "is identical to"
            logger.info("pretend: %d bytes computed, output %s the file on disk; nothing written", len(data), state)
        else:
            try:
                _write_atomic(path, data, args.backup)
            except OSError as exc:
                logger.error("cannot write %s: %s", path, exc.strerror or exc)
                return 1
            logger.info("the file has been modified: %s", path)

    return 1 if failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
