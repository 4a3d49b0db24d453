"""Command-line entry point: deploy, teardown and inspect a file service.

Usage:
    filestack deploy --config files.json
    filestack teardown [--preserve ComputeFunction ...]
    filestack state
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

from filestack.core.config import AppSettings
from filestack.core.exceptions import ConfigValidationError, FileStackError, TeardownError, exit_code_for
from filestack.core.logging import configure_logging
from filestack.deploy import create_orchestrator, create_teardown_coordinator
from filestack.models.deployment import ResourceKind
from filestack.models.inputs import parse_deployment_config
from filestack.persistence import create_state_store


def _emit(payload: Any) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _load_config(path: str) -> dict[str, Any]:
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigValidationError(f"Cannot read deployment config {path!r}: {exc}") from exc


def cmd_deploy(args: argparse.Namespace, settings: AppSettings) -> None:
    config = parse_deployment_config(_load_config(args.config))
    orchestrator = create_orchestrator(settings, region=config.region)
    deployed = asyncio.run(orchestrator.deploy(config))
    _emit(deployed.result.model_dump(mode="json"))


def cmd_teardown(args: argparse.Namespace, settings: AppSettings) -> None:
    preserve = {ResourceKind(kind) for kind in args.preserve}
    coordinator = create_teardown_coordinator(settings, region=args.region)
    report = asyncio.run(coordinator.teardown(preserve))
    _emit(report.model_dump(mode="json"))


def cmd_state(args: argparse.Namespace, settings: AppSettings) -> None:
    state = create_state_store(settings).load(settings.deployment_id)
    _emit(state.model_dump(mode="json") if state is not None else {})


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="filestack", description=__doc__.splitlines()[0])
    parser.add_argument("--deployment-id", help="Override FILESTACK_DEPLOYMENT_ID")
    sub = parser.add_subparsers(dest="command", required=True)

    deploy = sub.add_parser("deploy", help="Create or update every resource")
    deploy.add_argument("--config", required=True, help="Path to the deployment config JSON")
    deploy.set_defaults(handler=cmd_deploy)

    teardown = sub.add_parser("teardown", help="Remove resources; the bucket is always kept")
    teardown.add_argument(
        "--preserve", nargs="*", default=[], choices=[k.value for k in ResourceKind],
        help="Additional resource kinds to keep",
    )
    teardown.add_argument("--region", default=None)
    teardown.set_defaults(handler=cmd_teardown)

    state = sub.add_parser("state", help="Print the persisted deployment state")
    state.set_defaults(handler=cmd_state)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = AppSettings()
    if args.deployment_id:
        settings = settings.model_copy(update={"deployment_id": args.deployment_id})
    configure_logging(settings.log_level, json=settings.log_json)

    try:
        args.handler(args, settings)
    except TeardownError as exc:
        if exc.report is not None:
            _emit(exc.report.model_dump(mode="json"))
        print(f"error: {exc}", file=sys.stderr)
        return exit_code_for(exc)
    except FileStackError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return exit_code_for(exc)
    return exit_code_for(None)


if __name__ == "__main__":
    sys.exit(main())
