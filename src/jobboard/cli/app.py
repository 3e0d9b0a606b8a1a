from __future__ import annotations

import asyncio
import json

import typer
import uvicorn

from jobboard.api.app import create_app
from jobboard.config import get_settings
from jobboard.core.auth import AuthSession
from jobboard.core.board import Board
from jobboard.core.runtime import get_record_store
from jobboard.db.init import init_database
from jobboard.db.repositories import Repository, to_record
from jobboard.db.session import SessionLocal
from jobboard.errors import RecordNotFound, RecordValidationError
from jobboard.logging_config import configure_logging
from jobboard.types import STATUS_LABELS, Identity, JobFields, JobPatch, JobRecord, ensure_status

app = typer.Typer(help="JobBoard CLI")
jobs_app = typer.Typer(help="Job application records")

app.add_typer(jobs_app, name="jobs")

_INITIALIZED = False


def ensure_initialized() -> None:
    global _INITIALIZED
    if _INITIALIZED:
        return
    init_database()
    _INITIALIZED = True


def _user_option():
    return typer.Option(get_settings().default_user, "--user", help="Owning user id")


def _serialize(record: JobRecord) -> dict:
    payload = record.model_dump()
    payload["created_at"] = record.created_at.isoformat()
    return payload


def _format_line(record: JobRecord) -> str:
    line = f"[{STATUS_LABELS[record.status]}] {record.title} @ {record.company}"
    if record.url:
        line += f" <{record.url}>"
    return line


@app.command("init")
def init_cmd() -> None:
    """Create the data directory and database tables."""
    configure_logging()
    result = init_database()
    typer.echo(json.dumps({"ok": True, **result}, indent=2))


@jobs_app.command("list")
def jobs_list(
    user: str = _user_option(),
    status: list[str] = typer.Option([], "--status", help="Repeat to filter by several statuses"),
) -> None:
    configure_logging()
    ensure_initialized()
    try:
        statuses = [ensure_status(value) for value in status]
    except RecordValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc

    with SessionLocal() as db:
        rows = Repository(db).list_jobs(user, statuses=statuses or None)
        typer.echo(json.dumps([_serialize(to_record(row)) for row in rows], indent=2))


@jobs_app.command("add")
def jobs_add(
    title: str = typer.Option(..., "--title"),
    company: str = typer.Option(..., "--company"),
    status: str = typer.Option(None, "--status"),
    url: str = typer.Option(None, "--url"),
    notes: str = typer.Option(None, "--notes"),
    user: str = _user_option(),
) -> None:
    configure_logging()
    ensure_initialized()
    settings = get_settings()
    try:
        fields = JobFields.parse(
            {
                "title": title,
                "company": company,
                "status": status or settings.default_status,
                "url": url,
                "notes": notes,
            }
        )
    except RecordValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc

    record_id = asyncio.run(get_record_store().create_record(user, fields))
    typer.echo(json.dumps({"id": record_id}, indent=2))


@jobs_app.command("status")
def jobs_status(
    record_id: str = typer.Option(..., "--id"),
    status: str = typer.Option(..., "--status"),
) -> None:
    configure_logging()
    ensure_initialized()
    try:
        patch = JobPatch(status=ensure_status(status))
    except RecordValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc
    _apply_patch(record_id, patch)


@jobs_app.command("edit")
def jobs_edit(
    record_id: str = typer.Option(..., "--id"),
    title: str = typer.Option(None, "--title"),
    company: str = typer.Option(None, "--company"),
    url: str = typer.Option(None, "--url"),
    notes: str = typer.Option(None, "--notes"),
) -> None:
    configure_logging()
    ensure_initialized()
    values = {
        key: value
        for key, value in {"title": title, "company": company, "url": url, "notes": notes}.items()
        if value is not None
    }
    if not values:
        raise typer.BadParameter("nothing to change")
    try:
        patch = JobPatch.parse(values)
    except RecordValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc
    _apply_patch(record_id, patch)


@jobs_app.command("delete")
def jobs_delete(record_id: str = typer.Option(..., "--id")) -> None:
    configure_logging()
    ensure_initialized()
    asyncio.run(get_record_store().delete_record(record_id))
    typer.echo(json.dumps({"id": record_id, "deleted": True}, indent=2))


@app.command("watch")
def watch(
    user: str = _user_option(),
    status: list[str] = typer.Option([], "--status"),
    interval: float = typer.Option(5.0, "--interval", help="Seconds between fallback refreshes"),
) -> None:
    """Print the live board for a user, redrawing on every change."""
    configure_logging()
    ensure_initialized()
    try:
        statuses = [ensure_status(value) for value in status]
    except RecordValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc

    try:
        asyncio.run(_watch(user, statuses, interval))
    except KeyboardInterrupt:
        typer.echo("stopped")


async def _watch(user_id: str, statuses: list[str], interval: float) -> None:
    board = Board(get_record_store(), AuthSession())
    for value in statuses:
        board.filters.toggle(value)

    rendered: list[object] = [None]

    def render() -> None:
        snapshot = (tuple(board.visible), board.last_error)
        if board.loading or snapshot == rendered[0]:
            return
        rendered[0] = snapshot
        shown = ", ".join(board.filters.ordered_selection())
        typer.echo(f"--- {len(board.visible)} of {len(board.records)} jobs [{shown}] ---")
        for record in board.visible:
            typer.echo(_format_line(record))
        if board.last_error:
            typer.echo(f"! {board.last_error}")

    board.add_listener(render)
    board.start()
    board.auth.sign_in(Identity(id=user_id))
    try:
        while True:
            await asyncio.sleep(interval)
            await board.refresh()
    finally:
        await board.close()


@app.command("serve")
def serve(
    host: str | None = typer.Option(None, "--host"),
    port: int | None = typer.Option(None, "--port"),
) -> None:
    configure_logging()
    ensure_initialized()
    settings = get_settings()
    app_instance = create_app()
    uvicorn.run(app_instance, host=host or settings.app_host, port=port or settings.app_port)


def _apply_patch(record_id: str, patch: JobPatch) -> None:
    try:
        asyncio.run(get_record_store().update_record(record_id, patch))
    except RecordNotFound as exc:
        raise typer.BadParameter(str(exc)) from exc
    typer.echo(json.dumps({"id": record_id, **patch.values()}, indent=2))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
