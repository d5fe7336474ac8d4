from __future__ import annotations
import argparse

from .commands import inspect as cmd_inspect, patch as cmd_patch
from ..core.errors import InvalidArgument, PatchError
from ..core.logger import configure_logging, get_logger

log = get_logger(__name__)


def entrypoint():
    main()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Patch a client archive to use another RSA key, endpoint and port"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("patch", help="Write a patched copy of a client archive")
    p.add_argument("archive", type=str, help="Client archive (.jar) to patch")
    p.add_argument(
        "--rsa",
        type=str,
        required=True,
        help="Replacement RSA modulus as hex, or @file to read it from a file",
    )
    p.add_argument("--port", type=int, required=True, help="Port the client should connect to")
    p.add_argument(
        "--javconfig", type=str, default=None, help="Endpoint config URL handed to the client"
    )
    p.add_argument(
        "--world-list", type=str, default=None, help="World list URL handed to the client"
    )
    p.add_argument(
        "--config", type=str, default=None, help="Optional JSON settings file"
    )
    p.add_argument(
        "--dry-run",
        action="store_true",
        help="Run every patch pass without writing the patched archive",
    )

    i = sub.add_parser("inspect", help="Show where the patch targets live in an archive")
    i.add_argument("archive", type=str, help="Client archive (.jar) to inspect")
    i.add_argument(
        "--config", type=str, default=None, help="Optional JSON settings file"
    )
    return parser


def main(argv=None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        if args.command == "patch":
            cmd_patch.run(args)
        elif args.command == "inspect":
            cmd_inspect.run(args)
    except PatchError as exc:
        log.error(f"{exc.kind}: {exc}")
        raise SystemExit(2 if isinstance(exc, InvalidArgument) else 1) from exc


if __name__ == "__main__":
    main()
