"""Command line launcher: generate, show or close encounters, or serve the local API."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
import time
from typing import Any, Sequence

from urllib import error, request

from encounterbuilder.backend.client import GenerationClient
from encounterbuilder.backend.config import configure_logging, load_settings
from encounterbuilder.backend.errors import EncounterBuilderError, describe_error
from encounterbuilder.backend.models import artifact_to_dict
from encounterbuilder.backend.registry import BuilderState, EncounterRegistry
from encounterbuilder.backend.store import create_store
from encounterbuilder.backend.variants import VARIANTS


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Encounter Builder launcher")
    parser.add_argument("--server", default=None, help="generation service URL")
    parser.add_argument("--variant", choices=sorted(VARIANTS))
    parser.add_argument(
        "--field",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="request field, repeat for lists",
    )
    parser.add_argument("--show", action="store_true", help="print the restored encounter")
    parser.add_argument("--close", action="store_true", help="close the restored encounter view")
    parser.add_argument("--serve", action="store_true", help="run the local API with uvicorn")
    return parser.parse_args(argv)


def parse_fields(pairs: Sequence[str]) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    for pair in pairs:
        name, separator, value = pair.partition("=")
        if not separator or not name.strip():
            raise ValueError(f"Expected NAME=VALUE, got {pair!r}")
        name = name.strip()
        if name in fields:
            existing = fields[name]
            fields[name] = [*existing, value] if isinstance(existing, list) else [existing, value]
        else:
            fields[name] = value
    return fields


def wait_for_server(server_url: str, timeout_s: float = 5.0) -> bool:
    start = time.time()
    while time.time() - start < timeout_s:
        try:
            with request.urlopen(server_url, timeout=0.5) as response:
                if int(response.status) < 500:
                    return True
        except error.HTTPError as exc:
            if exc.code < 500:
                return True
        except (error.URLError, TimeoutError):
            pass
        time.sleep(0.2)
    return False


def print_artifact(registry: EncounterRegistry) -> None:
    slot = registry.display_slot
    if slot is None:
        print("Kein Encounter geöffnet.")
        return
    print(json.dumps(artifact_to_dict(slot.artifact), indent=2, ensure_ascii=False))


def serve() -> int:
    import uvicorn

    settings = load_settings()
    uvicorn.run("encounterbuilder.backend.api:app", host=settings.host, port=settings.port)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    settings = load_settings()
    configure_logging(settings.log_level)

    if args.serve:
        return serve()

    server_url = (args.server or settings.server_url).rstrip("/")
    registry = EncounterRegistry(
        client=GenerationClient(server_url=server_url),
        store=create_store(settings.database_url, settings.session_path),
        settings=settings,
    )
    registry.restore()

    if args.show:
        print_artifact(registry)
    if args.close and registry.state is BuilderState.DISPLAYING:
        registry.close()
    if not args.variant:
        return 0

    try:
        fields = parse_fields(args.field)
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    if not wait_for_server(server_url):
        print(f"Generierungsdienst unter {server_url} nicht erreichbar.", file=sys.stderr)
        return 1

    if registry.state is BuilderState.DISPLAYING:
        registry.close()
    try:
        asyncio.run(registry.submit({**fields, "variant": args.variant}))
    except EncounterBuilderError as exc:
        print(describe_error(exc), file=sys.stderr)
        return 1
    print_artifact(registry)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
