#!/usr/bin/env python3
"""
Pumping Iron CLI

Internal Codename: PUMPING-IRON
Command-line interface for the adaptive exercise engine.

Usage:
    pumping-iron adapt --workout FILE [--readiness N] [--focus FOCUS] [--json]
    pumping-iron substitute --exercise EXERCISE [--dislike TERM] [--pain LOCATION]
    pumping-iron alternates --exercise EXERCISE
    pumping-iron select --candidate NAME [--candidate NAME ...] [--history FILE] [--muscle GROUP]
    pumping-iron progress --history FILE
    pumping-iron focus FOCUS
    pumping-iron split-info
"""

import asyncio
import json
from typing import Optional, Tuple

import click

from pumping_iron.adaptation import ExerciseAdapter
from pumping_iron.config import (
    Settings,
    build_identity_provider,
    build_preference_store,
    configure_logging,
    load_settings,
)
from pumping_iron.errors import PumpingIronError
from pumping_iron.events import EventBus
from pumping_iron.models import AestheticFocus, Workout


async def create_adapter(settings: Settings) -> ExerciseAdapter:
    return await ExerciseAdapter.create(
        preference_store=build_preference_store(settings),
        event_bus=EventBus(),
        identity_provider=build_identity_provider(settings),
        settings=settings,
    )


def _read_history(history_file) -> dict:
    """History files hold a profile dict or a bare list of sessions."""
    if history_file is None:
        return {}
    data = json.load(history_file)
    if isinstance(data, list):
        return {'sessions': data}
    return data


@click.group()
@click.option('--config', 'config_path', type=click.Path(exists=True, dir_okay=False), help='Path to YAML config')
@click.pass_context
def cli(ctx, config_path: Optional[str]):
    """
    Pumping Iron - Adaptive Exercise Engine

    PUMPING-IRON: Volume up, or down, depending on the day.
    """
    settings = load_settings(config_path)
    configure_logging(settings)
    ctx.obj = settings


@cli.command()
@click.option('--workout', 'workout_file', type=click.File('r'), required=True, help='Workout JSON file ("-" for stdin)')
@click.option('--readiness', type=float, help='Readiness score (1-10), default: last known')
@click.option('--focus', type=click.Choice([f.value for f in AestheticFocus]), help='Override aesthetic focus for this run')
@click.option('--json', 'as_json', is_flag=True, help='Print JSON instead of text')
@click.pass_obj
def adapt(settings: Settings, workout_file, readiness: Optional[float], focus: Optional[str], as_json: bool):
    """Adapt a workout to focus and readiness."""
    try:
        workout = Workout.from_dict(json.load(workout_file))
    except (ValueError, PumpingIronError) as e:
        click.echo(f"❌ Invalid workout: {e}")
        return

    adapter = asyncio.run(create_adapter(settings))
    if focus:
        adapter.aesthetic_focus = AestheticFocus.parse(focus)

    adapted = adapter.adapt_workout(workout, readiness_score=readiness)

    if as_json:
        click.echo(json.dumps(adapted.to_dict(), indent=2))
    else:
        click.echo(adapter.format_workout_text(adapted))


@cli.command()
@click.option('--exercise', required=True, help='Exercise name')
@click.option('--dislike', 'dislikes', multiple=True, help='Disliked term (repeatable)')
@click.option('--pain', 'pain_location', help='Pain location (e.g., "knee", "lower back")')
@click.option('--equipment', multiple=True, help='Available equipment (repeatable)')
@click.option('--time', 'max_time', type=float, help='Maximum minutes per exercise')
@click.option('--fallback', is_flag=True, help='Fall back to safe defaults when nothing matches')
@click.pass_obj
def substitute(settings: Settings, exercise: str, dislikes: Tuple[str, ...], pain_location: Optional[str],
               equipment: Tuple[str, ...], max_time: Optional[float], fallback: bool):
    """Suggest substitutions for an exercise."""
    adapter = ExerciseAdapter(settings=settings)
    constraints = {'equipment': list(equipment) or None, 'time': max_time}

    result = adapter.suggest_substitutions(
        exercise, dislikes=dislikes, pain_location=pain_location, constraints=constraints
    )
    alternatives = result.alternatives
    message = result.message

    if not alternatives and fallback:
        fallback_result = adapter.get_fallback_alternatives(
            exercise, pain_location=pain_location, constraints=constraints
        )
        alternatives = fallback_result.alternatives
        message = f"{fallback_result.message} (fallback: {fallback_result.fallback_level})"

    click.echo("=" * 60)
    click.echo(f"SUBSTITUTIONS FOR: {exercise}")
    if pain_location:
        click.echo(f"Pain: {pain_location}")
    click.echo("=" * 60)
    click.echo(f"\n{message}")

    for i, a in enumerate(alternatives, 1):
        click.echo(f"\n{i}. {a.name}")
        click.echo(f"   Why: {a.rationale}")
        if a.rest_adjustment_seconds:
            click.echo(f"   Rest: {a.rest_adjustment_seconds:+d}s")
        if a.volume_adjustment_factor != 1.0:
            click.echo(f"   Volume: x{a.volume_adjustment_factor:g}")

    click.echo("\n" + "=" * 60)


@cli.command()
@click.option('--exercise', required=True, help='Exercise name')
@click.pass_obj
def alternates(settings: Settings, exercise: str):
    """List every known alternative for an exercise."""
    adapter = ExerciseAdapter(settings=settings)
    options = adapter.get_alternates(exercise)

    if not options:
        click.echo(f"❌ No alternatives found for '{exercise}'")
        return

    click.echo("=" * 60)
    click.echo(f"ALTERNATIVES FOR: {exercise}")
    click.echo("=" * 60)

    for i, a in enumerate(options, 1):
        click.echo(f"\n{i}. {a.name}")
        click.echo(f"   Why: {a.rationale}")
        click.echo(f"   Equipment: {a.equipment or 'N/A'}")
        if a.estimated_time is not None:
            click.echo(f"   Time: {a.estimated_time:g} min")

    click.echo("\n" + "=" * 60)


@cli.command()
@click.option('--candidate', 'candidates', multiple=True, required=True, help='Candidate exercise (repeatable)')
@click.option('--history', 'history_file', type=click.File('r'), help='Profile/session history JSON')
@click.option('--muscle', 'muscle_group', help='Target muscle group (chest, back, shoulders, legs, arms, core)')
@click.option('--experience', type=click.Choice(['beginner', 'intermediate', 'advanced']), help='Override experience level')
@click.pass_obj
def select(settings: Settings, candidates: Tuple[str, ...], history_file,
           muscle_group: Optional[str], experience: Optional[str]):
    """Pick the best next exercise from candidates."""
    try:
        profile = _read_history(history_file)
    except ValueError as e:
        click.echo(f"❌ Invalid history: {e}")
        return
    if experience:
        profile['experience'] = experience

    adapter = ExerciseAdapter(settings=settings)
    result = adapter.select_exercise_for_user(list(candidates), profile, target_muscle_group=muscle_group)

    if result.exercise is None:
        click.echo(f"❌ {result.rationale}")
        return

    click.echo(f"Selected: {result.exercise.name}")
    click.echo(f"Why: {result.rationale}")

    meta = result.selection_metadata
    if meta:
        click.echo(f"Score: {meta['selected_score']} "
                   f"(range {meta['score_range']['min']}-{meta['score_range']['max']}, "
                   f"{meta['total_candidates']} candidates)")


@cli.command()
@click.option('--history', 'history_file', type=click.File('r'), required=True, help='Profile/session history JSON')
@click.pass_obj
def progress(settings: Settings, history_file):
    """Summarize progression over recent sessions."""
    try:
        profile = _read_history(history_file)
    except ValueError as e:
        click.echo(f"❌ Invalid history: {e}")
        return

    adapter = ExerciseAdapter(settings=settings)
    snapshot = adapter.get_user_progression_data(profile.get('sessions') or [])

    click.echo("=" * 60)
    click.echo(f"PROGRESSION (Last {settings.history_window_days} days)")
    click.echo("=" * 60)
    click.echo(f"\nSessions/week: {snapshot.training_frequency_per_week:.1f}")
    click.echo(f"Average RPE: {snapshot.average_rpe:.1f}")

    if not snapshot.exercise_progress:
        click.echo("\n❌ No training data in window")
        return

    click.echo(f"\n{'─' * 60}")
    for label, names, color in (
        ("PROGRESSING", snapshot.progressing_exercises, 'green'),
        ("PLATEAU", snapshot.plateau_exercises, 'yellow'),
        ("REGRESSING", snapshot.regressing_exercises, 'red'),
    ):
        click.secho(f"{label}: ", fg=color, nl=False)
        click.echo(", ".join(names) if names else "none")

    click.echo("\n" + "=" * 60)


@cli.command()
@click.argument('focus', type=click.Choice([f.value for f in AestheticFocus]))
@click.pass_obj
def focus(settings: Settings, focus: str):
    """Set the stored aesthetic focus."""
    async def _update():
        adapter = await create_adapter(settings)
        return await adapter.update_aesthetic_focus(focus)

    if asyncio.run(_update()):
        click.echo(f"✓ Aesthetic focus set to {focus}")
    else:
        click.echo("❌ Could not save aesthetic focus (see log)")


@cli.command('split-info')
@click.pass_obj
def split_info(settings: Settings):
    """Show the current performance/aesthetic split."""
    adapter = asyncio.run(create_adapter(settings))
    info = adapter.get_split_info()

    click.echo(f"Aesthetic focus: {info.aesthetic_focus}")
    click.echo(f"Split: {info.performance_percentage} performance / {info.aesthetic_percentage} aesthetic")
    click.echo(f"Readiness: {info.readiness_level:g}/10")
    click.echo(f"Accessories reduced: {'yes' if info.accessories_reduced else 'no'}")


if __name__ == '__main__':
    cli()
