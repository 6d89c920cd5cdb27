"""Command line interface for the kiosk agent.

Usage:
    face-kiosk run --aws-collection-id kiosk-faces
    face-kiosk sync --config config/config.yaml
    face-kiosk push
    face-kiosk list
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .constants import DEFAULT_CONFIG_PATH, KioskConfig, setup_logging
from .errors import ConfigError, KioskError

logger = logging.getLogger(__name__)


def load_settings(args: argparse.Namespace) -> KioskConfig:
    """Load the config file and apply command line overrides.

    Raises:
        ConfigError: if the resulting configuration is invalid
    """
    config = KioskConfig.load(Path(args.config))

    if getattr(args, "device", None) is not None:
        config.camera.device_id = args.device
    if args.aws_region:
        config.remote.region = args.aws_region
    if args.aws_collection_id:
        config.remote.collection_id = args.aws_collection_id
    if args.base_dir:
        config.store.backend = "local"
        config.store.base_dir = args.base_dir

    config.validate()
    return config


def _build_synchronizer(config: KioskConfig):
    from .agent import create_store
    from .remote.rekognition import RekognitionClient
    from .sync import CatalogueSynchronizer

    store = create_store(config)
    client = RekognitionClient.from_config(config.remote)
    return CatalogueSynchronizer(store, client, config.remote.collection_id)


def cmd_run(config: KioskConfig, args: argparse.Namespace) -> int:
    """Run the kiosk agent."""
    from .agent import KioskAgent

    agent = KioskAgent(config)
    try:
        agent.start()
    except KeyboardInterrupt:
        pass
    return 0


def cmd_sync(config: KioskConfig, args: argparse.Namespace) -> int:
    """Run one synchronization pass."""
    report = _build_synchronizer(config).sync()
    print(f"Sync: {report.summary()}")
    for key in report.failed:
        print(f"  failed: {key}")
    return 1 if report.failed else 0


def cmd_push(config: KioskConfig, args: argparse.Namespace) -> int:
    """Push every missing catalogue face, ignoring timestamps."""
    synchronizer = _build_synchronizer(config)
    scan = synchronizer.store.scan_catalogue()
    report = synchronizer.reconcile(scan.keys)
    print(f"Push: {report.summary()}")
    for key in report.pushed:
        print(f"  indexed: {key}")
    return 1 if report.failed else 0


def cmd_list(config: KioskConfig, args: argparse.Namespace) -> int:
    """List faces in the remote collection."""
    from .remote.rekognition import RekognitionClient

    client = RekognitionClient.from_config(config.remote)
    entries = client.list_indexed(config.remote.collection_id)
    for entry in entries:
        print(f"{entry.external_id or '-':<32} {entry.face_id}")
    print(f"Total: {len(entries)}")
    return 0


COMMANDS = {
    "run": cmd_run,
    "sync": cmd_sync,
    "push": cmd_push,
    "list": cmd_list,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="face-kiosk",
        description="Facial recognition kiosk agent",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        type=str,
        default=str(DEFAULT_CONFIG_PATH),
        help="Path to configuration file",
    )
    common.add_argument("--aws-region", help="AWS region")
    common.add_argument("--aws-collection-id", help="AWS Rekognition collection ID")
    common.add_argument("--base-dir", help="Local store directory")
    common.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", parents=[common], help="Start the kiosk agent")
    run_parser.add_argument("--device", type=int, help="Web camera device ID")

    subparsers.add_parser("sync", parents=[common], help="Run one catalogue sync pass")
    subparsers.add_parser("push", parents=[common], help="Push all missing catalogue faces")
    subparsers.add_parser("list", parents=[common], help="List faces in the remote collection")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the kiosk CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        config = load_settings(args)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    setup_logging("DEBUG" if args.debug else config.logging.level, config.logging.format)

    try:
        return COMMANDS[args.command](config, args)
    except KioskError as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
