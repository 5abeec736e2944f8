"""CLI entry point for followgraph.

Every command prints one JSON document to stdout; logs go to stderr.

Examples:
    ```bash
    python -m followgraph profile npub1...
    python -m followgraph contacts npub1... --profiles
    python -m followgraph score npub1... --window-days 7 --top 20
    python -m followgraph compare npub1... npub1...
    PRIVATE_KEY=nsec1... python -m followgraph publish --add npub1... --remove npub1...
    ```
"""

import argparse
import asyncio
import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from followgraph.core.exceptions import ConfigurationError, FollowgraphError
from followgraph.core.logger import JsonFormatter, Logger, StructuredFormatter
from followgraph.core.yaml import load_yaml
from followgraph.services.engine import Engine
from followgraph.utils.keys import KeysConfig
from followgraph.utils.signer import KeysSigner


DEFAULT_CONFIG = Path("config") / "followgraph.yaml"

logger = Logger("cli")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="followgraph",
        description="Aggregate Nostr profiles, contacts and interaction scores across relays",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG,
        help=f"Engine config path (default: {DEFAULT_CONFIG})",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Log level (default: WARNING)",
    )
    parser.add_argument(
        "--log-format",
        choices=["kv", "json"],
        default="kv",
        help="Log output format on stderr (default: kv)",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    relays = commands.add_parser("relays", help="Show an identity's write relays")
    relays.add_argument("identity", help="Public key (hex or npub)")

    profile = commands.add_parser("profile", help="Show an identity's profile")
    profile.add_argument("identity", help="Public key (hex or npub)")

    contacts = commands.add_parser("contacts", help="List an identity's contacts")
    contacts.add_argument("identity", help="Public key (hex or npub)")
    contacts.add_argument(
        "--profiles", action="store_true", help="Include each contact's display metadata"
    )

    score = commands.add_parser("score", help="Rank contacts by the identity's interactions")
    score.add_argument("identity", help="Viewer public key (hex or npub)")
    score.add_argument("--window-days", type=int, help="Trailing window (default: from config)")
    score.add_argument("--top", type=int, help="Only print the N highest scores")

    compare = commands.add_parser("compare", help="Compare two identities' contact lists")
    compare.add_argument("current", help="Current user public key (hex or npub)")
    compare.add_argument("target", help="Target user public key (hex or npub)")

    publish = commands.add_parser(
        "publish", help="Update the signing key's contact list (key read from the environment)"
    )
    publish.add_argument("--add", nargs="*", default=[], help="Public keys to follow")
    publish.add_argument("--remove", nargs="*", default=[], help="Public keys to unfollow")

    return parser.parse_args(argv)


def setup_logging(level: str, log_format: str = "kv") -> None:
    """Configure the root logger with structured formatting.

    Installs a ``StructuredFormatter`` (or ``JsonFormatter`` for
    ``log_format="json"``) on a stderr handler so that all log output, from
    both ``Logger`` (with ``structured_kv`` extra) and plain
    ``logging.getLogger()`` calls in nips/utils, has one shape.
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter() if log_format == "json" else StructuredFormatter())
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level))


def _load_yaml_dict(path: Path) -> dict[str, Any]:
    """Load a YAML file as a dict, returning ``{}`` if the file does not exist."""
    if not path.exists():
        logger.info("config_not_found", path=str(path))
        return {}
    return load_yaml(path)


def _emit(payload: Any) -> None:
    sys.stdout.write(json.dumps(payload, indent=2, default=str) + "\n")


def _profile_dict(profile: Any) -> dict[str, Any]:
    data = dataclasses.asdict(profile)
    if hasattr(profile, "last_updated_display"):
        data["last_updated_display"] = profile.last_updated_display
    return data


def _build_signer(engine_dict: dict[str, Any]) -> KeysSigner:
    keys_env = engine_dict.get("keys_env", "PRIVATE_KEY")  # pragma: allowlist secret
    try:
        return KeysSigner(KeysConfig(keys_env=keys_env).keys)
    except ValidationError as e:
        raise ConfigurationError(f"cannot load signing key from {keys_env}: {e}") from e


async def run_command(
    engine: Engine, args: argparse.Namespace, signer: KeysSigner | None = None
) -> Any:
    """Execute one CLI command and return its JSON-serializable result."""
    if args.command == "relays":
        write_relays = await engine.resolve_write_relays(args.identity)
        relay_set = await engine.relay_set(args.identity)
        return {
            "write_relays": [r.url for r in write_relays],
            "relay_set": [r.url for r in relay_set],
        }

    if args.command == "profile":
        return _profile_dict(await engine.fetch_user_profile(args.identity))

    if args.command == "contacts":
        contacts = await engine.fetch_contacts(args.identity)
        if not args.profiles:
            return list(contacts)
        profiles = await engine.fetch_contact_profiles(contacts)
        return [_profile_dict(p) for p in profiles.values()]

    if args.command == "score":
        scores = await engine.score_interactions(args.identity, window_days=args.window_days)
        ranked = sorted(scores.values(), key=lambda s: (-s.score, s.pubkey))
        if args.top is not None:
            ranked = ranked[: args.top]
        return [dataclasses.asdict(s) for s in ranked]

    if args.command == "compare":
        data = await engine.compare(args.current, args.target)
        return {
            "current_user": _profile_dict(data.current_user),
            "target_user": _profile_dict(data.target_user),
            "mutual_contacts": list(data.mutual_contacts),
            "only_current_user": list(data.only_current_user),
            "only_target_user": list(data.only_target_user),
        }

    if args.command == "publish":
        if signer is None:
            raise ConfigurationError("publish requires a signing key")
        result = await engine.update_contacts(signer.public_key, add=args.add, remove=args.remove)
        return {
            "id": result.event.id,
            "relay": result.relay.url,
            "contacts": len(result.event.tags),
        }

    raise ValueError(f"unknown command: {args.command}")


async def main(argv: list[str] | None = None) -> int:
    """Main entry point: parse args, build the engine, and run one command."""
    args = parse_args(argv)
    setup_logging(args.log_level, args.log_format)

    try:
        engine_dict = _load_yaml_dict(args.config)
        signer = _build_signer(engine_dict) if args.command == "publish" else None
        engine = Engine.from_dict(engine_dict, signer=signer)
    except (ConfigurationError, FileNotFoundError) as e:
        logger.error("config_failed", error=str(e))
        return 2

    try:
        async with engine:
            _emit(await run_command(engine, args, signer))
        return 0
    except FollowgraphError as e:
        logger.error(f"{args.command}_failed", error=str(e))
        return 1
    except KeyboardInterrupt:
        logger.info("interrupted")
        return 130


def cli() -> None:
    """Synchronous entry point for console_scripts."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
