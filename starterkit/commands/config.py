import click
from starterkit.config import load_config, generate_config_example
import json


@click.group("config")
def config_cmd():
    """Configuration management commands."""
    pass


@config_cmd.command("generate")
def generate_config():
    """Generate an example configuration file."""
    generate_config_example()


@config_cmd.command("show")
def show_config():
    """Show the current configuration with all merges applied."""
    config = load_config()
    click.echo(json.dumps(config, indent=2, ensure_ascii=False))
