"""Click CLI entry point for cuke-engine."""

from __future__ import annotations

from pathlib import Path

import click

from cuke_engine import __version__
from cuke_engine.config import (
    ProjectConfig,
    find_feature_files,
    is_initialized,
    load_config,
    save_config,
)
from cuke_engine.models import Feature, ParseError, ScenarioOutline


@click.group()
@click.version_option(version=__version__, prog_name="cuke-engine")
def cli() -> None:
    """cuke-engine: parse Gherkin features and match Cucumber Expressions."""


@cli.command()
def init() -> None:
    """Initialize a project for cuke-engine."""
    from cuke_engine.catalog import save_catalog

    project_root = Path.cwd()
    if is_initialized(project_root):
        click.echo("Warning: Project is already initialized. Configuration left unchanged.")
        return

    config = ProjectConfig()
    features_dir = project_root / config.features_dir
    features_dir.mkdir(exist_ok=True)
    config_path = save_config(config, project_root)

    steps_path = project_root / config.steps_file
    if not steps_path.exists():
        save_catalog([], steps_path)

    click.echo("Initialized cuke-engine project.")
    click.echo(f"  Created: {features_dir}/")
    click.echo(f"  Steps:   {steps_path}")
    click.echo(f"  Config:  {config_path}")


@cli.command("parse")
@click.option("--file", "file_path", type=click.Path(exists=True, dir_okay=False), default=None)
@click.option("--format", "fmt", type=click.Choice(["summary", "json"]), default="summary")
@click.option("--expand", is_flag=True, default=False, help="Expand Scenario Outlines")
@click.pass_context
def parse_cmd(ctx: click.Context, file_path: str | None, fmt: str, expand: bool) -> None:
    """Parse feature files and print a summary or JSON tree."""
    from cuke_engine.exporters.json_export import export_json
    from cuke_engine.outline import expand_scenarios

    paths = _feature_paths(ctx, file_path)
    if not paths:
        click.echo("No feature files found.")
        return

    features = _parse_all(ctx, paths)

    for path, feature in features:
        scenarios = expand_scenarios(feature) if expand else None
        if fmt == "json":
            click.echo(export_json(feature, scenarios=scenarios))
            continue

        definitions = scenarios if scenarios is not None else feature.scenarios
        click.echo(f"{path}: Feature: {feature.name}")
        if feature.tags:
            click.echo(f"  Tags: {', '.join('@' + t for t in feature.tags)}")
        if feature.background:
            click.echo(f"  Background: {len(feature.background.steps)} step(s)")
        for s in definitions:
            kind = "Scenario Outline" if isinstance(s, ScenarioOutline) else "Scenario"
            click.echo(f"  {kind}: {s.name} (line {s.line + 1}, {len(s.steps)} step(s))")


@cli.command("match")
@click.argument("pattern")
@click.argument("text")
@click.pass_context
def match_cmd(ctx: click.Context, pattern: str, text: str) -> None:
    """Match TEXT against a Cucumber Expression PATTERN."""
    from cuke_engine.expression import compile_expression
    from cuke_engine.models import ExpressionError

    try:
        compiled = compile_expression(pattern)
    except ExpressionError as e:
        click.echo(f"Error: {e}")
        ctx.exit(1)
        return

    args = compiled.match(text)
    if args is None:
        click.echo("No match.")
        ctx.exit(1)
        return

    click.echo(f"Matched with {len(args)} argument(s):")
    for i, arg in enumerate(args, 1):
        click.echo(f"  {i}. {arg!r}")


@cli.command()
@click.pass_context
def check(ctx: click.Context) -> None:
    """Report steps that no pattern in the step catalog matches."""
    from cuke_engine.catalog import CatalogError, load_catalog
    from cuke_engine.outline import expand_scenarios
    from cuke_engine.registry import UndefinedStepError

    project_root = Path.cwd()
    if not is_initialized(project_root):
        click.echo("Error: Not initialized. Run `cuke-engine init` first.")
        ctx.exit(1)
        return

    config = load_config(project_root)
    try:
        catalog = load_catalog(project_root / config.steps_file)
    except (CatalogError, FileNotFoundError) as e:
        click.echo(f"Error: {e}")
        ctx.exit(1)
        return

    paths = find_feature_files(project_root, config)
    if not paths:
        click.echo("No feature files found.")
        return

    features = _parse_all(ctx, paths)

    checked = 0
    # (location, step line) -> suggested pattern, in first-seen order
    undefined: dict[tuple[str, str], str] = {}
    for path, feature in features:
        background_steps = feature.background.steps if feature.background else ()
        for scenario in expand_scenarios(feature):
            for step in (*background_steps, *scenario.steps):
                checked += 1
                try:
                    catalog.registry.resolve(step)
                except UndefinedStepError as e:
                    key = (f"{path}:{step.line + 1}", f"{step.keyword} {step.text}")
                    undefined.setdefault(key, e.suggestion)

    click.echo(f"Checked {checked} step(s) against {len(catalog.registry)} pattern(s).")
    if not undefined:
        click.echo("All steps are defined.")
        return

    click.echo(f"\n{len(undefined)} undefined step(s):")
    for (location, step_line), suggestion in undefined.items():
        click.echo(f"  {location}: {step_line}")
        click.echo(f"    suggested pattern: {suggestion}")
    ctx.exit(1)


def _feature_paths(ctx: click.Context, file_path: str | None) -> list[Path]:
    if file_path:
        return [Path(file_path)]

    project_root = Path.cwd()
    if not is_initialized(project_root):
        click.echo("Error: Project is not initialized. Run `cuke-engine init` first.")
        ctx.exit(1)
    return find_feature_files(project_root, load_config(project_root))


def _parse_all(ctx: click.Context, paths: list[Path]) -> list[tuple[Path, Feature]]:
    """Parse every path, reporting all parse errors before exiting."""
    from cuke_engine.parser import parse_feature_file

    features: list[tuple[Path, Feature]] = []
    failed = False
    for path in paths:
        try:
            features.append((path, parse_feature_file(path)))
        except ParseError as e:
            click.echo(f"Error: {e}")
            failed = True
    if failed:
        ctx.exit(1)
    return features
