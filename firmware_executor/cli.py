"""
Command line entry point.

Usage:
    firmware-executor --host 10.0.0.5 --username root --password secret \\
        apply --name BIOS --version 2.23.0 --local-file BIOS_2.23.0.bin
    firmware-executor --host 10.0.0.5 --token <X-Auth-Token> apply --job job.json
    firmware-executor --host 10.0.0.5 --token <X-Auth-Token> read --name BIOS
"""

import argparse
import json
import sys
from typing import Callable, Dict, List, Optional

from pydantic import ValidationError

from .config import Settings, settings as default_settings
from .session_manager import SessionManager
from .utils import configure_logger, redact_token
from .redfish_firmware import (
    FirmwareOperations,
    FirmwareResource,
    RedfishAdapter,
    RedfishFirmwareError,
    get_retry_guidance,
)


def build_operations(settings: Settings, log_command_fn: Optional[Callable] = None) -> FirmwareOperations:
    """Create the adapter stack used by the CLI."""
    logger = configure_logger("redfish_firmware", settings.log_level)
    session_manager = SessionManager(verify_ssl=settings.verify_ssl, timeout=settings.request_timeout)
    adapter = RedfishAdapter(
        session_manager=session_manager,
        logger=logger,
        log_command_fn=log_command_fn,
    )
    return FirmwareOperations(adapter, settings=settings)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="firmware-executor",
        description="Apply firmware to a Redfish management controller"
    )
    parser.add_argument("--host", required=True, help="Controller host or IP address")
    parser.add_argument("--token", help="Existing X-Auth-Token session token")
    parser.add_argument("--username", help="Login user when no token is given")
    parser.add_argument("--password", help="Login password when no token is given")
    parser.add_argument("--verify-ssl", action="store_true", default=None, help="Verify TLS certificates")
    parser.add_argument("--log-level", help="Logging level (default from FIRMWARE_EXECUTOR_LOG_LEVEL)")

    subparsers = parser.add_subparsers(dest="command", required=True)

    apply_parser = subparsers.add_parser("apply", help="Update firmware if the device is not at the requested version")
    apply_parser.add_argument("--job", help="JSON file holding the firmware resource configuration")
    apply_parser.add_argument("--name", help="Firmware name as reported in the inventory")
    apply_parser.add_argument("--version", help="Desired firmware version")
    apply_parser.add_argument("--local-file", help="Path to the firmware image")
    apply_parser.add_argument("--signature-file", default="", help="Path to a detached signature")
    apply_parser.add_argument("--update-recovery-set", action="store_true", help="Request recovery set update")

    read_parser = subparsers.add_parser("read", help="Show the installed version of a firmware")
    read_parser.add_argument("--name", required=True, help="Firmware name as reported in the inventory")

    return parser


def _load_state(args: argparse.Namespace) -> Dict:
    if getattr(args, "job", None):
        with open(args.job, "r", encoding="utf-8") as f:
            return json.load(f)
    state = {
        "name": args.name,
        "version": getattr(args, "version", None),
        "local_file": getattr(args, "local_file", None),
        "signature_file": getattr(args, "signature_file", "") or "",
        "update_recovery_set": getattr(args, "update_recovery_set", False),
    }
    # read only needs a name; the other fields are placeholders for validation
    if args.command == "read":
        state["version"] = state["version"] or "-"
        state["local_file"] = state["local_file"] or "-"
    return {k: v for k, v in state.items() if v is not None}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    overrides = {}
    if args.verify_ssl is not None:
        overrides["verify_ssl"] = args.verify_ssl
    if args.log_level:
        overrides["log_level"] = args.log_level
    settings = default_settings.model_copy(update=overrides) if overrides else default_settings

    operations = build_operations(settings)
    logger = operations.adapter.logger

    try:
        state = _load_state(args)
    except (OSError, ValueError) as e:
        logger.error(f"Could not load job file: {e}")
        return 2

    session = None
    token = args.token
    try:
        if not token:
            username = args.username or settings.default_user
            password = args.password or settings.default_password
            session = operations.create_session(args.host, username, password)
            token = session.token
            logger.debug(f"Session created on {args.host}, token {redact_token(token)}")

        resource = FirmwareResource(operations, args.host, token)
        if args.command == "apply":
            result = resource.apply(state)
        else:
            result = resource.read(state)
            found = bool(result["id"])
            result = {
                "name": result["name"],
                "version": result["version"] if found else None,
                "id": result["id"],
            }

        print(json.dumps(result, indent=2))
        return 0

    except ValidationError as e:
        logger.error(f"Invalid firmware configuration: {e}")
        return 2
    except RedfishFirmwareError as e:
        logger.error(f"[{e.error_code or 'ERROR'}] {e.message}")
        guidance = get_retry_guidance(e.error_code)
        if guidance:
            logger.error(guidance)
        return 1
    finally:
        if session is not None and session.location:
            operations.delete_session(args.host, session.token, session.location)
        operations.adapter.session_manager.close_all_sessions()


if __name__ == "__main__":
    sys.exit(main())
