"""CLI entry point for notebrotr.

``serve`` opens the store, loads the identity, connects and subscribes to
the relay, then runs the Ingester and the Api concurrently until SIGINT or
SIGTERM. ``keygen`` prints a freshly minted identity as JSON.

Examples:
    ```bash
    python -m notebrotr
    python -m notebrotr serve --config config/notebrotr.yaml --log-level DEBUG
    python -m notebrotr serve --relay wss://nos.lol
    python -m notebrotr keygen
    ```
"""

import argparse
import asyncio
import json
import logging
import signal
import sys
import time
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from notebrotr.core import (
    ConfigurationError,
    EventStore,
    RelayConnectionError,
    StorageError,
    StoreConfig,
    start_metrics_server,
)
from notebrotr.core.logger import Logger, StructuredFormatter
from notebrotr.core.metrics import MetricsConfig
from notebrotr.core.yaml import load_yaml
from notebrotr.models import EventFilter, EventKind
from notebrotr.services import Api, ApiConfig, Ingester, IngesterConfig, RelayConfig, RelaySession
from notebrotr.utils.keys import IdentityConfig, load_or_create_identity, mint_identity


DEFAULT_CONFIG = Path("config") / "notebrotr.yaml"

logger = Logger("cli")


class AppConfig(BaseModel):
    """Top-level configuration file layout.

    ``metrics`` applies to both services unless a service section sets its
    own.
    """

    store: StoreConfig = Field(default_factory=StoreConfig)
    identity: IdentityConfig = Field(default_factory=IdentityConfig)
    relay: RelayConfig = Field(default_factory=RelayConfig)
    ingester: IngesterConfig = Field(default_factory=IngesterConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)


def build_config(data: dict[str, Any], *, relay_url: str | None = None) -> AppConfig:
    """Validate a parsed config file, applying CLI overrides.

    Raises:
        ConfigurationError: If any section fails validation.
    """
    data = dict(data)
    metrics = data.get("metrics")
    if metrics is not None:
        for section in ("ingester", "api"):
            service = dict(data.get(section) or {})
            service.setdefault("metrics", metrics)
            data[section] = service
    if relay_url is not None:
        data["relay"] = {**(data.get("relay") or {}), "url": relay_url}

    try:
        return AppConfig(**data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


async def run_services(store: EventStore, session: RelaySession, config: AppConfig) -> int:
    """Subscribe, then run the Ingester and the Api until shutdown.

    Shutdown order: the Api drains in-flight requests, the session is
    closed (ending the notification sequence), then the ingestion task is
    awaited. The caller closes the store.
    """
    await session.subscribe(
        EventFilter(
            author=session.identity.public_key_hex,
            kind=EventKind.TEXT_NOTE,
            since=int(time.time()),
        )
    )

    ingester = Ingester(store, session, config.ingester)
    api = Api(store, session, config.api)

    metrics_server = await start_metrics_server(config.metrics)
    if config.metrics.enabled:
        logger.info(
            "metrics_server_started",
            host=config.metrics.host,
            port=config.metrics.port,
            path=config.metrics.path,
        )

    def handle_signal(sig: signal.Signals) -> None:
        logger.info("shutdown_signal", signal=sig.name)
        api.request_shutdown()
        ingester.request_shutdown()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, handle_signal, sig)

    try:
        async with ingester:
            ingest_task = asyncio.create_task(ingester.run())
            try:
                async with api:
                    await api.run_forever()
            finally:
                ingester.request_shutdown()
                await session.close()
                await ingest_task
        return 0
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)
        await metrics_server.stop()


async def serve(config: AppConfig) -> int:
    """Open resources in startup order and run until shutdown.

    Returns:
        Exit code: 0 for a clean shutdown, 1 for a fatal startup error.
    """
    store = EventStore(config.store)
    try:
        await store.connect()
        text_notes = await store.count(EventFilter(kind=EventKind.TEXT_NOTE))
        logger.info("store_opened", path=config.store.path, text_notes=text_notes)

        identity = load_or_create_identity(
            config.identity.path, persist=config.identity.persist_generated
        )
        logger.info("identity_loaded", npub=identity.npub)

        session = RelaySession(identity, config.relay)
        await session.connect()
        try:
            return await run_services(store, session, config)
        finally:
            await session.close()
    except (ConfigurationError, StorageError, RelayConnectionError) as e:
        logger.error("startup_failed", error_type=type(e).__name__, error=str(e))
        return 1
    finally:
        await store.close()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="notebrotr",
        description="Nostr note bridge with a local event archive",
    )

    parser.add_argument(
        "command",
        nargs="?",
        choices=["serve", "keygen"],
        default="serve",
        help="Command to run (default: serve)",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG,
        help=f"Config path (default: {DEFAULT_CONFIG})",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Log level (default: INFO)",
    )

    parser.add_argument(
        "--relay",
        help="Relay URL, overriding the config file",
    )

    return parser.parse_args(argv)


def setup_logging(level: str) -> None:
    """Install a ``StructuredFormatter`` on the root handler."""
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level))


def _load_yaml_dict(path: Path) -> dict[str, Any]:
    """Load a YAML file as a dict, returning ``{}`` if the file does not exist."""
    if not path.exists():
        logger.warning("config_not_found", path=str(path))
        return {}
    return load_yaml(path)


async def main(argv: list[str] | None = None) -> int:
    """Main entry point: parse args, load config and run the command."""
    args = parse_args(argv)
    setup_logging(args.log_level)

    if args.command == "keygen":
        print(json.dumps(mint_identity().to_dict()))
        return 0

    try:
        config = build_config(_load_yaml_dict(args.config), relay_url=args.relay)
    except ConfigurationError as e:
        logger.error("config_invalid", error=str(e))
        return 1

    try:
        return await serve(config)
    except KeyboardInterrupt:
        logger.info("interrupted")
        return 130


def cli() -> None:
    """Synchronous entry point for console_scripts."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    cli()
