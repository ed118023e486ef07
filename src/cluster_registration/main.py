"""CLI entrypoint for cluster registration."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from pathlib import Path

from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from cluster_registration import __version__
from cluster_registration.backend import BackendClient, HttpBackendClient
from cluster_registration.config import Settings, get_settings
from cluster_registration.errors import ClusterRegistrationError, OperationCancelledError
from cluster_registration.lifecycle import ClusterRegistrationManager
from cluster_registration.models import ConnectorProvider, RegistrationRequest
from cluster_registration.report import print_absent, print_record, print_tracked
from cluster_registration.state import StateStore
from cluster_registration.timing import CancelToken

EXIT_OK = 0
EXIT_ABSENT = 1
EXIT_FAILED = 2
EXIT_CANCELLED = 130


def _parse_tag(value: str) -> tuple[str, str]:
    key, sep, val = value.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got {value!r}")
    return key, val


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cluster-registration",
        description="Register external Kubernetes clusters with a managed control plane.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--region", default=None, help="Control-plane region (default: from env)")
    parser.add_argument("--endpoint-url", default=None, help="Override the control-plane base URL")
    parser.add_argument(
        "--state-file",
        type=Path,
        default=None,
        help="JSON file of tracked registrations (default: from env or ./cluster-registrations.json)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    sub = parser.add_subparsers(dest="command", required=True)

    register = sub.add_parser("register", help="Register a cluster and wait until it settles")
    register.add_argument("name", help="Cluster name (immutable)")
    register.add_argument(
        "--provider",
        required=True,
        choices=[p.value for p in ConnectorProvider],
        help="Connector provider of the external cluster",
    )
    register.add_argument("--role-arn", required=True, help="Role the connector assumes")
    register.add_argument(
        "--tag",
        dest="tags",
        action="append",
        type=_parse_tag,
        default=[],
        metavar="KEY=VALUE",
        help="Tag to attach; repeatable",
    )
    register.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds to wait for the registration to settle (default: from env or 1200)",
    )

    show = sub.add_parser("show", help="Read a registration and refresh its tracked state")
    show.add_argument("name")

    sub.add_parser("refresh", help="Re-read every tracked registration")

    deregister = sub.add_parser("deregister", help="Deregister a cluster")
    deregister.add_argument("name")

    imp = sub.add_parser("import", help="Start tracking an existing registration")
    imp.add_argument("name")

    sub.add_parser("list", help="List tracked registrations")
    return parser


def _apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    if args.region:
        settings.region = args.region
    if args.endpoint_url:
        settings.endpoint_url = args.endpoint_url
    if args.state_file:
        settings.state_file = args.state_file
    return settings


def run(
    args: argparse.Namespace,
    manager: ClusterRegistrationManager,
    console: Console,
    cancel: CancelToken | None = None,
) -> int:
    """Dispatch one subcommand; returns the process exit code."""
    if args.command == "register":
        request = RegistrationRequest.model_validate(
            {
                "name": args.name,
                "connector_config": {"provider": args.provider, "role_arn": args.role_arn},
                "tags": dict(args.tags),
            }
        )
        print_record(manager.create(request, timeout=args.timeout, cancel=cancel), console)
        return EXIT_OK

    if args.command == "show":
        record = manager.read(args.name)
        if record is None:
            print_absent(args.name, console)
            return EXIT_ABSENT
        print_record(record, console)
        return EXIT_OK

    if args.command == "refresh":
        tracked = manager.state.entries() if manager.state is not None else []
        for entry in tracked:
            if cancel:
                cancel.raise_if_cancelled(entry.id)
            if manager.read(entry.id) is None:
                print_absent(entry.id, console)
        print_tracked(manager.state.entries() if manager.state is not None else [], console)
        return EXIT_OK

    if args.command == "deregister":
        manager.delete(args.name, cancel=cancel)
        console.print(f"Deregistered cluster registration [bold]{args.name}[/bold]")
        return EXIT_OK

    if args.command == "import":
        print_record(manager.import_registration(args.name), console)
        return EXIT_OK

    if args.command == "list":
        print_tracked(manager.state.entries() if manager.state is not None else [], console)
        return EXIT_OK

    raise ValueError(f"unknown command: {args.command}")


def main(argv: list[str] | None = None, client: BackendClient | None = None) -> int:
    """Entrypoint for the cluster-registration CLI."""
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True)],
    )
    logger = logging.getLogger("cluster_registration")
    if not args.verbose:
        logger.setLevel(logging.WARNING)

    cancel = CancelToken()
    previous_handler = signal.signal(signal.SIGINT, lambda *_: cancel.cancel())
    http_client: HttpBackendClient | None = None
    try:
        settings = _apply_overrides(get_settings(), args)
        if client is None:
            http_client = HttpBackendClient.from_settings(settings)
            client = http_client
        manager = ClusterRegistrationManager.from_settings(
            settings,
            client,
            state=StateStore(settings.state_file),
        )
        return run(args, manager, Console(), cancel)
    except OperationCancelledError:
        print("Cancelled", file=sys.stderr)
        return EXIT_CANCELLED
    except (ClusterRegistrationError, ValidationError) as e:
        if args.verbose:
            logging.exception("Operation failed")
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILED
    finally:
        if previous_handler is not None:
            signal.signal(signal.SIGINT, previous_handler)
        if http_client is not None:
            http_client.close()


if __name__ == "__main__":
    sys.exit(main())
