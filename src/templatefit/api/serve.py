"""Console entry point for the HTTP API.

uvicorn builds the app through :func:`templatefit.api.app.create_app`, so settings are read
once in the serving process (and again in each reload worker).
"""

from __future__ import annotations

from typing import Annotated

import typer
import uvicorn

from templatefit.config import load_settings


def main(
    host: Annotated[str, typer.Option(help="Interface to bind")] = "127.0.0.1",
    port: Annotated[int, typer.Option(help="Port to bind")] = 8000,
    reload: Annotated[bool, typer.Option(help="Restart on code changes (dev only)")] = False,
) -> None:
    """Serve /analyze, /validate and /fit."""

    uvicorn.run(
        "templatefit.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=load_settings().log_level.lower(),
    )


def run() -> None:
    typer.run(main)


if __name__ == "__main__":
    run()
