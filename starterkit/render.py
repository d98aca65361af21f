"""
Output rendering functions for starterkit.
Handles formatting and displaying starters and generation results.
"""
import json

import click
from rich.table import Table

from .config import console


def render_templates(templates, as_json=False):
    """
    Render discovered starters to stdout.

    Args:
        templates: Mapping of starter name to Template
        as_json: If True, output as JSON, otherwise as a table
    """
    if as_json:
        data = {name: template.to_dict() for name, template in templates.items()}
        click.echo(json.dumps(data, indent=2, ensure_ascii=False))
        return

    if not templates:
        console.print("[yellow]No starters found[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    table.add_column("Rules", justify="center")
    table.add_column("File filter", justify="center")

    for name, template in templates.items():
        table.add_row(
            name,
            template.description,
            str(len(template.rules)),
            '-' if template.file_patterns is None else str(len(template.file_patterns)),
        )

    console.print(table)


def render_summary(summary, as_json=False):
    """
    Render the outcome of a generation run.

    Args:
        summary: GenerationSummary returned by the generator
        as_json: If True, output as JSON, otherwise as formatted text
    """
    if as_json:
        click.echo(json.dumps(summary.to_dict(), indent=2, ensure_ascii=False))
        return

    counts = summary.counts()
    table = Table(title=f"Generated {summary.source_dir}")
    table.add_column("Outcome", style="cyan")
    table.add_column("Files", justify="right")
    table.add_row("Rewritten", str(counts['applied']))
    table.add_row("Unchanged", str(counts['unchanged']))
    table.add_row("Skipped", str(counts['skipped']))
    table.add_row("Failed", str(counts['failed']), style="red" if counts['failed'] else None)
    console.print(table)

    for path, error in sorted(summary.failed.items()):
        console.print(f"[red]✗[/red] {path}: {error}")
    if not summary.descriptor_removed:
        console.print("[yellow]generator.yaml was not removed[/yellow]")
