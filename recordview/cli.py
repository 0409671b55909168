"""Command line front end for the record views.

Example:
    recordview --token "$CRM_TOKEN" show job 42 --history
"""

import logging

import click

from recordview.core.async_utils import run_async
from recordview.core.config import settings
from recordview.db.session import make_engine, make_session_factory
from recordview.schemas.reference import EntityReference
from recordview.services.api_client import CrmApiClient, CrmApiError
from recordview.services.field_catalog import HeaderFieldConfig
from recordview.services.pinned_records import PinnedRecords, pinned_record_for
from recordview.services.preference_store import SqlPreferenceStore
from recordview.services.record_view import RecordView
from recordview.services.reference_registry import build_reference, get_reference_type
from recordview.services.reference_resolver import ReferenceResolver
from recordview.services.view_configs import get_view_config


def _configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    if settings.SENTRY_DSN and settings.ENV != "dev":
        import sentry_sdk

        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            environment=settings.ENV,
            release=settings.VERSION,
            send_default_pii=False,
        )
        logging.info("Sentry initialized for error tracking")


def _make_client(ctx: click.Context) -> CrmApiClient:
    return CrmApiClient(base_url=ctx.obj.get("base_url"), token=ctx.obj.get("token"))


def _make_store(ctx: click.Context) -> SqlPreferenceStore:
    engine = make_engine(ctx.obj.get("prefs_url"))
    return SqlPreferenceStore(make_session_factory(engine))


def _echo_pairs(pairs: list[tuple[str, object]], indent: str = "  ") -> None:
    for label, value in pairs:
        if isinstance(value, list):
            click.echo(f"{indent}{label}:")
            for item in value or ["(none)"]:
                click.echo(f"{indent}  - {item}")
        else:
            click.echo(f"{indent}{label}: {value}")


@click.group()
@click.option("--base-url", default=None, help="CRM API base URL (defaults to API_BASE_URL)")
@click.option("--token", default=None, help="Bearer token (defaults to API_TOKEN)")
@click.option("--prefs-url", default=None, help="Preference database URL")
@click.pass_context
def cli(ctx: click.Context, base_url: str | None, token: str | None, prefs_url: str | None):
    """CRM record view tools."""
    _configure_logging()
    ctx.ensure_object(dict)
    ctx.obj.update(base_url=base_url, token=token, prefs_url=prefs_url)


@cli.command()
@click.argument("record_type")
@click.argument("record_id")
@click.option("--history/--no-history", default=False, help="Also print the change history")
@click.option("--user", "user_filter", default="", help="Filter history by performer")
@click.option("--order", type=click.Choice(["asc", "desc"]), default="desc", help="History sort order")
@click.pass_context
def show(ctx: click.Context, record_type: str, record_id: str, history: bool, user_filter: str, order: str):
    """
    Print a record's header, summary panels and recent notes.

    Example:
        recordview show job 42 --history --order asc
    """
    try:
        config = get_view_config(record_type)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="RECORD_TYPE")

    async def _run() -> RecordView:
        async with _make_client(ctx) as api:
            view = RecordView(api, config, record_id, store=_make_store(ctx))
            await view.load()
            return view

    view = run_async(_run())
    if view.record is None:
        click.echo(f"❌ Error: {view.error}")
        ctx.exit(1)

    click.echo(f"{view.self_reference.display}")
    _echo_pairs(view.header_values())
    for column in ("left", "right"):
        for panel_id in view.layout.columns[column]:
            click.echo(f"[{panel_id}]")
            _echo_pairs(view.panel_values(panel_id))
    if view.summary_counts:
        click.echo("Counts: " + ", ".join(f"{k}={v}" for k, v in view.summary_counts.items()))
    if view.notes_error:
        click.echo(f"Notes unavailable: {view.notes_error}")

    if history:
        if view.history_error:
            click.echo(f"History unavailable: {view.history_error}")
        for entry in view.rendered_history(user_filter, order):
            click.echo(f"* {entry.title} ({entry.performed_at or 'unknown time'}) by {entry.performed_by}")
            for line in entry.lines:
                click.echo(f"    {line}")


@cli.command()
@click.argument("query")
@click.pass_context
def search(ctx: click.Context, query: str):
    """Search every record type for QUERY and print the matching references."""

    async def _run() -> list[EntityReference]:
        async with _make_client(ctx) as api:
            return await ReferenceResolver(api).search(query)

    results = run_async(_run())
    if not results:
        click.echo("No matches")
        return
    for ref in results:
        click.echo(f"{ref.display}  [{ref.type.value}]")


async def _load_reference(api: CrmApiClient, token: str) -> EntityReference:
    record_type, _, record_id = token.partition(":")
    spec = get_reference_type(record_type)
    raw = await api.fetch_record(spec.collection, record_id, spec.record_key)
    return build_reference(raw, spec.type)


@cli.command("add-note")
@click.argument("record_type")
@click.argument("record_id")
@click.option("--text", required=True, help="Note text")
@click.option("--action", "note_action", required=True, help="Note action, e.g. Follow-up")
@click.option("--about", "about", multiple=True, help="Extra about reference as TYPE:ID")
@click.option("--also", "additional", multiple=True, help="Additional reference as TYPE:ID")
@click.pass_context
def add_note(
    ctx: click.Context,
    record_type: str,
    record_id: str,
    text: str,
    note_action: str,
    about: tuple[str, ...],
    additional: tuple[str, ...],
):
    """
    Add a note to a record.

    Example:
        recordview add-note job 42 --text "Called candidate" --action Follow-up --about job-seeker:7
    """
    try:
        config = get_view_config(record_type)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="RECORD_TYPE")

    async def _run():
        async with _make_client(ctx) as api:
            view = RecordView(api, config, record_id, store=_make_store(ctx))
            if await view.load() is None:
                return view, None
            composer = view.open_note_composer()
            composer.set_text(text)
            composer.set_action(note_action)
            for token in about:
                composer.add_about_reference(await _load_reference(api, token))
            for token in additional:
                composer.add_additional_reference(await _load_reference(api, token))
            note = await composer.submit()
            return view, (note, composer)

    try:
        view, outcome = run_async(_run())
    except (CrmApiError, ValueError) as e:
        click.echo(f"❌ Error: {e}")
        ctx.exit(1)

    if outcome is None:
        click.echo(f"❌ Error: {view.error}")
        ctx.exit(1)
    note, composer = outcome
    if note is None:
        for field_name, message in composer.errors.items():
            click.echo(f"❌ {field_name}: {message}")
        if composer.submit_error:
            click.echo(f"❌ {composer.submit_error}")
        ctx.exit(1)
    click.echo(f"✓ Note added to {view.self_reference.display}")


@cli.command("header-fields")
@click.argument("record_type")
@click.option("--add", "add", multiple=True, help="Field key to show")
@click.option("--remove", "remove", multiple=True, help="Field key to hide")
@click.option("--up", "up", multiple=True, help="Move a field one position up")
@click.option("--down", "down", multiple=True, help="Move a field one position down")
@click.option("--reset", is_flag=True, help="Restore the default header fields")
@click.pass_context
def header_fields(
    ctx: click.Context,
    record_type: str,
    add: tuple[str, ...],
    remove: tuple[str, ...],
    up: tuple[str, ...],
    down: tuple[str, ...],
    reset: bool,
):
    """Show or edit the header fields of a record type (shared by all its records)."""
    try:
        config = get_view_config(record_type)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="RECORD_TYPE")

    async def _run() -> tuple[HeaderFieldConfig, bool]:
        async with _make_client(ctx) as api:
            header = HeaderFieldConfig(api, config.entity_type, list(config.default_header_fields))
            await header.load()
            if not (add or remove or up or down or reset):
                return header, True
            header.open_editor()
            if reset:
                header.reset_draft()
            for key in remove:
                if key in header.draft:
                    header.toggle(key)
            for key in add:
                if key not in header.draft:
                    header.toggle(key)
            for key in up:
                header.reorder(key, "up")
            for key in down:
                header.reorder(key, "down")
            return header, await header.save()

    header, ok = run_async(_run())
    if not ok:
        click.echo(f"❌ {header.save_error}")
        ctx.exit(1)
    for key in header.fields:
        click.echo(key)


@cli.command()
@click.argument("record_type")
@click.argument("record_id")
@click.option("--label", default=None, help="Label to show in the pinned list")
@click.pass_context
def pin(ctx: click.Context, record_type: str, record_id: str, label: str | None):
    """Pin or unpin a record."""
    try:
        spec = get_reference_type(record_type)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="RECORD_TYPE")

    pinned = PinnedRecords(_make_store(ctx))
    record = pinned_record_for(spec.type, record_id, label or spec.format_id(record_id))
    result = pinned.toggle(record)
    if result == "limit":
        click.echo(f"❌ You can pin up to {pinned.limit} records")
        ctx.exit(1)
    click.echo(f"✓ {result.capitalize()} {record.label}")
    for item in pinned.load():
        click.echo(f"  {item.label}  {item.url}")


if __name__ == "__main__":
    cli()
