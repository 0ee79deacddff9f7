"""Run the assistant gateway sidecar.

The sidecar serves the assistant routes the learning UI calls (chat, code
analysis, generation, execution, file and project operations) and keeps the
provider status map fresh by polling the backend health endpoint.
"""

from __future__ import annotations

import argparse

import uvicorn


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Serve the assistant gateway routes for the learning UI and refresh "
            "provider status from the backend in the background."
        )
    )
    parser.add_argument("--host", default="127.0.0.1", help="Interface to bind (default: 127.0.0.1).")
    parser.add_argument("--port", type=int, default=8787, help="Port to listen on (default: 8787).")
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload (development only).",
    )
    return parser.parse_args(args=argv)


def main(argv: list[str] | None = None) -> int:
    """Serve the gateway routes for the learning UI."""

    args = parse_args(argv)
    uvicorn.run(
        "assistant_gateway.app:create_app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        factory=True,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
