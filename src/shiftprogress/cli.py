"""CLI entry point for shiftprogress."""

from pathlib import Path

import click


@click.group()
@click.option("--profile", default=None, help="Save slot to use (overrides config)")
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding config.yaml and saves.db",
)
@click.pass_context
def main(ctx: click.Context, profile: str, data_dir: Path) -> None:
    """shiftprogress: progression and adaptive difficulty for clinical shifts."""
    from shiftprogress.config.settings import Settings

    ctx.ensure_object(dict)
    settings = Settings.load(data_dir)
    if profile:
        settings.profile = profile
    ctx.obj["settings"] = settings


@main.command()
@click.pass_context
def serve(ctx: click.Context) -> None:
    """Run the JSON-lines server on stdin/stdout."""
    import asyncio

    from shiftprogress.server.__main__ import main as serve_main

    asyncio.run(serve_main(ctx.obj["settings"]))


def _load_store(settings):
    from shiftprogress.state.progression import ProgressionStore
    from shiftprogress.state.saves import SaveStore

    store = ProgressionStore(tables=settings.load_tables())
    data = SaveStore(db_path=settings.saves_path).get(settings.get_profile())
    if data is not None:
        store.load_save_data(data)
    return store


@main.command()
@click.pass_context
def summary(ctx: click.Context) -> None:
    """Show the profile's progression summary."""
    settings = ctx.obj["settings"]
    store = _load_store(settings)
    info = store.get_progression_summary()

    click.echo(f"Profile: {settings.get_profile()}")
    click.echo(
        f"  Difficulty: {info['current_difficulty']} "
        f"({store.time_limit_seconds}s per question)"
    )
    click.echo(f"  Shifts: {info['shifts_completed']}  Questions: {info['total_questions']}")
    click.echo(f"  Accuracy: {info['overall_accuracy']:.0%}  Best streak: {info['best_streak']}")
    click.echo(f"  Specialties: {', '.join(store.unlocked_specialties) or '-'}")
    weak = store.weak_topics()
    if weak:
        click.echo(f"  Weak topics: {', '.join(sorted(weak))}")

    nxt = info["next_unlock"]
    if nxt is None:
        click.echo("  Everything unlocked.")
        return
    click.echo(f"  Next: {nxt['kind']} {nxt['name']} ({nxt['progress']:.0%})")
    for name, req in nxt["requirements"].items():
        click.echo(f"    {name}: {req['current']:g} / {req['required']:g}")


@main.command()
@click.pass_context
def tables(ctx: click.Context) -> None:
    """List specialties, topics and unlock requirements."""
    tbl = ctx.obj["settings"].load_tables()

    for level, req in tbl.difficulty_requirements.items():
        fields = ", ".join(f"{k}>={v:g}" for k, v in req.fields())
        click.echo(f"  {level.display_name}: {fields}")
    for name in tbl.specialties:
        topics = ", ".join(tbl.topics_for(name))
        click.echo(f"  {name}: {topics}")
    for m in tbl.milestones:
        click.echo(f"  [{m.id}] {m.title} -> {m.reward}")


@main.command()
@click.confirmation_option(prompt="Delete this profile's saved progression?")
@click.pass_context
def reset(ctx: click.Context) -> None:
    """Delete the profile's save slot."""
    from shiftprogress.state.saves import SaveStore

    settings = ctx.obj["settings"]
    SaveStore(db_path=settings.saves_path).delete(settings.get_profile())
    click.echo(f"Reset profile {settings.get_profile()}")
