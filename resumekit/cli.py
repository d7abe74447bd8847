# resumekit/cli.py
"""
CLI interface for resumekit.

Thin presentation layer over the sync layer: list/create/delete go through
ResumeListCoordinator and content/metadata edits through ResumeEditor, the
same objects a UI would drive.
"""

import asyncio
import json
from pathlib import Path

import typer
from pydantic import ValidationError

from resumekit.config import ResumeKitConfig, get_db_path, load_config
from resumekit.logging_config import configure_logging
from resumekit.models.content import ResumeData, ResumeMetadata
from resumekit.models.errors import RemoteError
from resumekit.models.store import ResumeStore, StorePolicy
from resumekit.sync import (
    Notification,
    NotificationLevel,
    Notifier,
    RecordingNotifier,
    ResumeEditor,
    ResumeListCoordinator,
)

app = typer.Typer(
    name="resumekit",
    help="Create, edit and share resumes from the terminal.",
    no_args_is_help=True,
)

_state: dict = {"config": None}


def _run(coro):
    """Run async function from sync CLI context."""
    return asyncio.run(coro)


def _config() -> ResumeKitConfig:
    if _state["config"] is None:
        _state["config"] = load_config()
    return _state["config"]


async def _get_store(config: ResumeKitConfig) -> ResumeStore:
    """Open the configured store for the configured user."""
    policy = StorePolicy.from_config(config)

    from resumekit.models.sqlite_store import SQLiteResumeStore

    store = SQLiteResumeStore(str(get_db_path(config)), config.store.user_id, policy=policy)
    await store.initialize()
    return store


class EchoNotifier(Notifier):
    """Prints notifications: successes to stdout in green, errors to stderr in red."""

    def notify(self, notification: Notification) -> None:
        if notification.level is NotificationLevel.ERROR:
            typer.echo(typer.style(notification.message, fg=typer.colors.RED), err=True)
        else:
            typer.echo(typer.style(notification.message, fg=typer.colors.GREEN))


def _fail(message: str) -> None:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(1)


def _fmt_time(value) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else "-"


@app.callback()
def main(
    config_file: Path = typer.Option(None, "--config", "-c", help="Path to config.yaml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
):
    """Load configuration and set up logging."""
    config = load_config(config_file)
    configure_logging(
        "verbose" if verbose else config.output.verbosity,
        log_format=config.output.log_format,
    )
    if config.store.backend == "memory":
        _fail("The memory backend keeps nothing between runs; set store.backend to sqlite")
    _state["config"] = config


@app.command("list")
def list_resumes():
    """List your resumes (most recently updated first)."""

    async def _list():
        store = await _get_store(_config())
        try:
            coordinator = ResumeListCoordinator(store)
            await coordinator.refetch()
            return coordinator.resumes, coordinator.error
        finally:
            await store.close()

    resumes, error = _run(_list())
    if error:
        _fail(error)

    if not resumes:
        typer.echo("No resumes found.")
        return

    typer.echo(f"{'ID':<34} {'TEMPLATE':<9} {'UPDATED':<17} TITLE")
    typer.echo("-" * 80)
    for item in resumes:
        typer.echo(
            typer.style(f"{item.id:<34} ", fg=typer.colors.CYAN)
            + f"{item.template_id:<9} {_fmt_time(item.updated_at):<17} {item.title}"
        )


@app.command()
def create(
    title: str = typer.Option(None, "--title", "-t", help="Title (default from config)"),
):
    """Create a new resume and print its editor path."""
    notifier = RecordingNotifier(forward_to=EchoNotifier())
    opened: list[str] = []

    async def _create():
        store = await _get_store(_config())
        try:
            coordinator = ResumeListCoordinator(store, notifier=notifier, navigate=opened.append)
            await coordinator.refetch()
            coordinator.create(title)
            await coordinator.wait_idle()
        finally:
            await store.close()

    _run(_create())
    if notifier.errors:
        raise typer.Exit(1)
    for path in opened:
        typer.echo(f"Open in editor: {path}")


@app.command()
def delete(
    resume_ids: list[str] = typer.Argument(..., help="IDs of resumes to delete"),
):
    """Delete one or more resumes."""
    notifier = RecordingNotifier(forward_to=EchoNotifier())

    async def _delete():
        store = await _get_store(_config())
        try:
            coordinator = ResumeListCoordinator(store, notifier=notifier)
            await coordinator.refetch()
            for resume_id in resume_ids:
                coordinator.remove(resume_id)
            await coordinator.wait_idle()
            return len(coordinator.resumes)
        finally:
            await store.close()

    remaining = _run(_delete())
    typer.echo(f"{remaining} resume(s) remaining.")
    if notifier.errors:
        raise typer.Exit(1)


@app.command()
def show(resume_id: str = typer.Argument(..., help="Resume ID")):
    """Show a resume's metadata and content summary."""

    async def _show():
        store = await _get_store(_config())
        try:
            editor = ResumeEditor(store, resume_id)
            await editor.load()
            link = await store.get_public_link(resume_id) if editor.document else None
            return editor.document, editor.error, link
        finally:
            await store.close()

    try:
        doc, error, link = _run(_show())
    except RemoteError as e:
        _fail(e.message or "Failed to load resume")
    if error or doc is None:
        _fail(error or "Resume not found")

    basics = doc.data.basics
    typer.echo(f"Resume:   {doc.id}")
    typer.echo(f"Title:    {doc.title}")
    typer.echo(f"Template: {doc.template_id} ({doc.accent_color})")
    typer.echo(f"Updated:  {_fmt_time(doc.updated_at)}")
    if basics.name:
        typer.echo(f"Name:     {basics.name}" + (f" <{basics.email}>" if basics.email else ""))
    typer.echo(
        f"Sections: {len(doc.data.work)} work, {len(doc.data.education)} education, "
        f"{len(doc.data.skills)} skills, {len(doc.data.languages)} languages, "
        f"{len(doc.data.projects)} projects"
    )
    if link and link.public_url:
        typer.echo(typer.style(f"Public:   {link.public_url}", fg=typer.colors.GREEN))


@app.command()
def update(
    resume_id: str = typer.Argument(..., help="Resume ID"),
    title: str = typer.Option(None, "--title", "-t", help="New title"),
    template: str = typer.Option(None, "--template", help="classic, modern or minimal"),
    color: str = typer.Option(None, "--color", help="Accent colour as #rrggbb"),
):
    """Update a resume's title, template or accent colour."""
    try:
        metadata = ResumeMetadata(title=title, template_id=template, accent_color=color)
    except ValidationError as e:
        _fail(str(e.errors()[0]["msg"]))
    if not metadata.changes():
        _fail("Nothing to update (use --title, --template or --color)")

    notifier = RecordingNotifier(forward_to=EchoNotifier())

    async def _update():
        store = await _get_store(_config())
        try:
            editor = ResumeEditor(store, resume_id, notifier=notifier)
            if not await editor.load():
                return editor.error
            editor.set_metadata(metadata)
            await editor.close()
            return None
        finally:
            await store.close()

    error = _run(_update())
    if error:
        _fail(error)
    if notifier.errors:
        raise typer.Exit(1)
    typer.echo(f"Updated {resume_id}: {', '.join(metadata.changes())}")


@app.command()
def edit(
    resume_id: str = typer.Argument(..., help="Resume ID"),
    content_file: Path = typer.Argument(..., help="JSON file with resume content"),
):
    """Replace a resume's content with the contents of a JSON file."""
    try:
        data = ResumeData.model_validate(json.loads(content_file.read_text()))
    except (OSError, ValueError) as e:
        _fail(f"Invalid content file: {e}")

    notifier = RecordingNotifier(forward_to=EchoNotifier())

    async def _edit():
        store = await _get_store(_config())
        try:
            editor = ResumeEditor(
                store, resume_id, notifier=notifier, config=_config().editor
            )
            if not await editor.load():
                return editor.error
            editor.set_data(data)
            await editor.close()
            return None
        finally:
            await store.close()

    error = _run(_edit())
    if error:
        _fail(error)
    if notifier.errors:
        raise typer.Exit(1)
    typer.echo(f"Saved content of {resume_id}.")


def _set_public(resume_id: str, is_public: bool):
    async def _toggle():
        store = await _get_store(_config())
        try:
            return await store.set_public(resume_id, is_public)
        finally:
            await store.close()

    try:
        return _run(_toggle())
    except RemoteError as e:
        _fail(e.message or "Failed to update sharing")


@app.command()
def share(resume_id: str = typer.Argument(..., help="Resume ID")):
    """Make a resume public and print its link."""
    info = _set_public(resume_id, True)
    typer.echo(typer.style(f"Public link: {info.public_url}", fg=typer.colors.GREEN))


@app.command()
def unshare(resume_id: str = typer.Argument(..., help="Resume ID")):
    """Turn off a resume's public link (the link is kept for re-sharing)."""
    _set_public(resume_id, False)
    typer.echo(f"Resume {resume_id} is now private.")


@app.command()
def public(slug: str = typer.Argument(..., help="Public link slug")):
    """Look up a shared resume by its public slug."""

    async def _public():
        store = await _get_store(_config())
        try:
            return await store.get_public(slug)
        finally:
            await store.close()

    doc = _run(_public())
    if doc is None:
        _fail("Resume not found")

    basics = doc.data.basics
    name = basics.name or "Professional"
    typer.echo(f"{name} - {basics.label or doc.title}")
    if basics.summary:
        typer.echo(basics.summary)
