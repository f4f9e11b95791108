"""CLI entrypoints for templatefit."""

from __future__ import annotations

import json
from pathlib import Path

import typer

from templatefit.config import load_settings
from templatefit.document.store import InMemoryDocumentStore
from templatefit.logging import configure_logging, get_logger
from templatefit.models.document import LayoutDocument
from templatefit.orchestrator.workflow import ContentFittingWorkflow, fit_template

app = typer.Typer(add_completion=False, help="Fit user content into layout templates")
logger = get_logger(__name__)


@app.command()
def fit(
    document_path: Path = typer.Argument(..., help="Template document JSON (gridsData/layersMap)"),
    user_input: str = typer.Argument(
        "",
        help="What the template should say. If omitted, provide --input-file.",
        show_default=False,
    ),
    input_file: Path | None = typer.Option(
        None,
        "--input-file",
        help="UTF-8 text file with the user input (for long or multi-line content)",
    ),
    output: Path = typer.Option(Path("fitted.json"), "--output", "-o", help="Output document JSON"),
    template_id: str | None = typer.Option(None, "--template-id", help="Template id for run logs"),
    template_title: str | None = typer.Option(
        None, "--template-title", help="Template title for run logs"
    ),
    max_iterations: int | None = typer.Option(
        None,
        "--max-iterations",
        min=1,
        max=10,
        help="Iteration budget (overrides TEMPLATEFIT_MAX_ITERATIONS)",
    ),
) -> None:
    """Run the content-fitting workflow on a document and write the result."""

    if not user_input:
        if input_file is None:
            raise typer.BadParameter("Provide either a positional USER_INPUT or --input-file.")
        user_input = input_file.read_text(encoding="utf-8").strip()
        if not user_input:
            raise typer.BadParameter("The input file is empty.")

    settings = load_settings()
    if max_iterations is not None:
        settings.max_iterations = max_iterations

    configure_logging(settings.log_level)
    logger.info("CLI fit requested", extra={"document": str(document_path)})

    document = LayoutDocument.model_validate_json(document_path.read_text(encoding="utf-8"))
    store = InMemoryDocumentStore(document)
    workflow = ContentFittingWorkflow.from_settings(settings)
    fit_template(
        workflow,
        user_input,
        store,
        template_id=template_id,
        template_title=template_title,
    )

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(
        json.dumps(store.document.to_wire(), ensure_ascii=False, indent=2),
        encoding="utf-8",
    )
    typer.echo(str(output))


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Interface to bind"),
    port: int = typer.Option(8000, help="Bind port"),
    reload: bool = typer.Option(False, help="Enable auto-reload (dev)"),
) -> None:
    """Start the API server."""

    from templatefit.api.serve import main

    main(host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
