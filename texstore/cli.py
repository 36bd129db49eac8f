"""
texstore Command Line
=====================

Maintenance commands for a shared texture directory:

    texstore register --resources-root out/Resources --namespace HTML a.png b.png
    texstore prune    --resources-root out/Resources --namespace HTML --documents out/UI
    texstore stats    --resources-root out/Resources --namespace HTML
"""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from texstore.core.dedup import (
    SharedTextureStore,
    TextureStoreError,
    directory_size,
    format_file_size,
    prune_unused_shared_textures,
)
from texstore.utils.config_manager import load_config
from texstore.utils.logger import setup_logging, shutdown_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="texstore",
        description="Deduplicate and prune shared UI textures"
    )
    parser.add_argument("--config", type=Path, help="JSON store configuration file")
    parser.add_argument("--log-dir", type=Path, help="Directory for texstore.log (default: ./logs)")
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--resources-root", type=Path, required=True, help="Root of the generated resources")
    common.add_argument("--namespace", help="UI namespace (overrides the config file)")

    sub = parser.add_subparsers(dest="command", required=True)

    register = sub.add_parser("register", parents=[common], help="Register PNG files and print their references")
    register.add_argument("files", nargs="+", type=Path)

    prune = sub.add_parser("prune", parents=[common], help="Delete shared textures no document references")
    prune.add_argument("--documents", type=Path, required=True, help="Directory of generated UI documents")

    sub.add_parser("stats", parents=[common], help="Show shared texture statistics")

    return parser


def _cmd_register(args, config) -> int:
    with SharedTextureStore.from_resources_root(args.resources_root, config=config) as store:
        store.rehydrate()
        futures = [(path, store.submit(path.read_bytes())) for path in args.files]
        for path, future in futures:
            texture = future.result()
            print(f"{path} -> {texture.reference_path} ({texture.match.value})")
    return 0


def _cmd_prune(args, config) -> int:
    result = prune_unused_shared_textures(args.documents, args.resources_root, config)
    print(f"Pruned {len(result.deleted)} unused shared textures, kept {result.kept}")
    return 0


def _cmd_stats(args, config) -> int:
    with SharedTextureStore.from_resources_root(args.resources_root, config=config) as store:
        store.rehydrate()
        stats = store.stats()
        size = format_file_size(directory_size(store.shared_dir))
    print(f"Shared directory: {store.shared_dir}")
    print(f"Entries: {stats.entries}  Buckets: {stats.buckets}  Size: {size}")
    return 0


COMMANDS = {
    "register": _cmd_register,
    "prune": _cmd_prune,
    "stats": _cmd_stats,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    setup_logging(
        log_dir=args.log_dir,
        console_level=logging.DEBUG if args.verbose else logging.WARNING,
    )

    try:
        config = load_config(args.config) if args.config else load_config()
        if args.namespace:
            config = replace(config, namespace=args.namespace)
        return COMMANDS[args.command](args, config)
    except (TextureStoreError, ValueError, OSError) as e:
        logger.error(f"{args.command} failed: {e}")
        return 1
    finally:
        shutdown_logging()


if __name__ == "__main__":
    sys.exit(main())
