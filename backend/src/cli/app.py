"""Typer application entrypoint."""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

import typer
from rich import print as rprint
from rich.table import Table

from catalog.errors import DatasetExistsError, DatasetNotFoundError
from catalog.models import CreateDatasetPayload, ImageEntry
from catalog.service import catalog_service
from labeling.errors import LabelingError
from labeling.models import (
    AddLabelPayload,
    CreateSessionPayload,
    SessionType,
    SliceAttributes,
    SliceSampleOptions,
    now_ms,
)
from labeling.service import labeling_service
from logging_config import configure_logging
from ranking.errors import InconsistentJudgmentHistory


configure_logging()


app = typer.Typer(help="Slice annotation backend CLI")
db_app = typer.Typer(help="Manage the application database")
dataset_app = typer.Typer(help="Register and inspect datasets")
session_app = typer.Typer(help="Create and label labeling sessions")

app.add_typer(db_app, name="db")
app.add_typer(dataset_app, name="dataset")
app.add_typer(session_app, name="session")


def _fail(message: str) -> None:
    rprint(f"[red]{message}[/red]")
    raise typer.Exit(code=1)


@db_app.command("init")
def db_init() -> None:
    """Create all tables if they do not exist yet."""
    catalog_service._ensure_initialized()
    labeling_service._ensure_initialized()
    typer.echo("Database schema ready.")


@dataset_app.command("add")
def dataset_add(
    name: str = typer.Argument(..., help="Unique dataset name"),
    root_path: Path = typer.Argument(..., help="Dataset root directory"),
    manifest: Optional[Path] = typer.Option(
        None, help="JSON list of {rel_path, dims} entries; the root is scanned when omitted"
    ),
) -> None:
    images = None
    if manifest is not None:
        images = [ImageEntry.model_validate(entry) for entry in json.loads(manifest.read_text())]
    payload = CreateDatasetPayload(name=name, root_path=str(root_path.expanduser().resolve()), images=images)
    try:
        dataset = catalog_service.create_dataset(payload)
    except (DatasetExistsError, FileNotFoundError, ValueError) as exc:
        _fail(f"Could not add dataset: {exc}")
    typer.echo(f"Added dataset {dataset.id} ({dataset.image_count} images).")


@dataset_app.command("list")
def dataset_list() -> None:
    table = Table(title="Datasets")
    table.add_column("ID", justify="right")
    table.add_column("Name")
    table.add_column("Root")
    table.add_column("Images", justify="right")
    table.add_column("Sessions", justify="right")
    for dataset in catalog_service.list_datasets():
        table.add_row(
            str(dataset.id),
            dataset.name,
            dataset.root_path,
            str(dataset.image_count),
            str(dataset.session_count),
        )
    rprint(table)


@session_app.command("create")
def session_create(
    dataset_id: int = typer.Argument(...),
    name: str = typer.Argument(...),
    session_type: SessionType = typer.Option(SessionType.COMPARISON_ACTIVE_SORT, "--type"),
    prompt: str = typer.Option("", help="Question shown to raters"),
    label_options: str = typer.Option("", help="Comma-separated label options"),
    slices_file: Optional[Path] = typer.Option(
        None, help="JSON list of {image_id, slice_dim, slice_index}; sampling is used when omitted"
    ),
    image_count: int = typer.Option(10, help="Images to sample"),
    slice_count: int = typer.Option(10, help="Slices to sample"),
    slice_dim: int = typer.Option(2, min=0, max=2),
    slice_min_pct: float = typer.Option(0.0),
    slice_max_pct: float = typer.Option(100.0),
    comparison_count: Optional[int] = typer.Option(None, help="Random comparison sessions only; -1 for all pairs"),
    seed: Optional[int] = typer.Option(None, help="Sampling seed"),
) -> None:
    slices: Optional[List[SliceAttributes]] = None
    sampling: Optional[SliceSampleOptions] = None
    if slices_file is not None:
        slices = [SliceAttributes.model_validate(entry) for entry in json.loads(slices_file.read_text())]
    else:
        sampling = SliceSampleOptions(
            image_count=image_count,
            slice_count=slice_count,
            slice_dim=slice_dim,
            slice_min_pct=slice_min_pct,
            slice_max_pct=slice_max_pct,
        )
    payload = CreateSessionPayload(
        dataset_id=dataset_id,
        session_type=session_type,
        name=name,
        prompt=prompt,
        label_options=label_options,
        slices=slices,
        sampling=sampling,
        comparison_count=comparison_count,
        seed=seed,
    )
    try:
        session = labeling_service.create_session(payload)
    except (LabelingError, DatasetNotFoundError, ValueError) as exc:
        _fail(f"Could not create session: {exc}")
    typer.echo(f"Created {session.session_type.value} session {session.id}.")


@session_app.command("list")
def session_list(dataset_id: int = typer.Argument(...)) -> None:
    table = Table(title=f"Sessions in dataset {dataset_id}")
    table.add_column("ID", justify="right")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Tags")
    for session in labeling_service.list_sessions(dataset_id):
        table.add_row(str(session.id), session.name, session.session_type.value, ", ".join(session.tags))
    rprint(table)


@session_app.command("elements")
def session_elements(session_id: int = typer.Argument(...)) -> None:
    try:
        elements = labeling_service.list_elements(session_id)
    except LabelingError as exc:
        _fail(str(exc))
    table = Table(title=f"Session {session_id}")
    table.add_column("Index", justify="right")
    table.add_column("Type")
    table.add_column("Slices")
    table.add_column("Label")
    for element in elements:
        if element.slice is not None:
            described = f"{element.slice.image_id}:{element.slice.slice_dim}:{element.slice.slice_index}"
        else:
            described = f"{element.slice_1.id} vs {element.slice_2.id}"
        table.add_row(str(element.element_index), element.element_type.value, described, element.current_label or "")
    rprint(table)


@session_app.command("warn")
def session_warn(session_id: int = typer.Argument(...), index: int = typer.Argument(...)) -> None:
    """Report whether labeling INDEX would discard later labels."""
    try:
        warn = labeling_service.should_warn_about_label_overwrite(session_id, index)
    except LabelingError as exc:
        _fail(str(exc))
    typer.echo("yes" if warn else "no")


@session_app.command("label")
def session_label(
    session_id: int = typer.Argument(...),
    index: int = typer.Argument(...),
    value: str = typer.Argument(..., help="Label value, e.g. First or Second for comparisons"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Overwrite later labels without asking"),
) -> None:
    start = now_ms()
    try:
        if not yes and labeling_service.should_warn_about_label_overwrite(session_id, index):
            typer.confirm(
                "Adding a label here will overwrite all comparisons and labels that come after it. Proceed?",
                abort=True,
            )
        label = labeling_service.add_label(session_id, index, AddLabelPayload(value=value, start_timestamp=start))
    except InconsistentJudgmentHistory as exc:
        _fail(f"Inconsistent judgment history: {exc}")
    except LabelingError as exc:
        _fail(str(exc))
    if label is None:
        typer.echo("Label unchanged.")
    else:
        typer.echo(f"Recorded label {label.id}.")


@session_app.command("results")
def session_results(session_id: int = typer.Argument(...)) -> None:
    try:
        results = labeling_service.compute_results(session_id)
    except InconsistentJudgmentHistory as exc:
        _fail(f"Inconsistent judgment history: {exc}")
    except LabelingError as exc:
        _fail(str(exc))

    table = Table(title="Results" + ("" if results.labeling_complete else " (labeling incomplete)"))
    table.add_column("Rank", justify="right")
    table.add_column("Slice")
    table.add_column("Image")
    table.add_column("Label")
    table.add_column("Wins", justify="right")
    for position, result in enumerate(results.slice_results, start=1):
        table.add_row(
            str(position),
            f"{result.slice.slice_dim}:{result.slice.slice_index}",
            result.slice.image_rel_path or str(result.slice.image_id),
            result.latest_label_value or "",
            "" if result.wins is None else str(result.wins),
        )
    rprint(table)


if __name__ == "__main__":
    app()
