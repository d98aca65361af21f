"""
Starter commands: list available starters and instantiate them.
"""

import logging
import secrets
import shutil
import string
import sys
from pathlib import Path

import click

from starterkit.config import load_config
from starterkit.generator import generate
from starterkit.registry import collect_templates, get_template
from starterkit.render import render_summary, render_templates
from starterkit.template import ArgsPlaceholder, GENERATOR_FILE_NAME, load_template

logger = logging.getLogger(__name__)

SECRET_ALPHABET = string.ascii_letters + string.digits


def generate_secret(length):
    """Random alphanumeric secret for the ``Secret`` rule kind."""
    return ''.join(secrets.choice(SECRET_ALPHABET) for _ in range(length))


def _starters_dir(option, config):
    return Path(option or config['starters']['directory']).expanduser()


def _placeholders(lib_name, secret, config):
    if not secret:
        secret = generate_secret(config['generation']['secret_length'])
    return ArgsPlaceholder(lib_name=lib_name, secret=secret)


@click.command('list')
@click.option('-d', '--starters-dir', type=click.Path(file_okay=False),
              help='Directory holding the starters (default: use config)')
@click.option('--audit', is_flag=True, help='Warn about starters with a broken generator.yaml')
@click.option('--json', 'as_json', is_flag=True, help='Output in JSON format.')
def list_handler(starters_dir, audit, as_json):
    """
    List starters found in the starters directory.

    Examples:

        starterkit list

        starterkit list -d ./starters --audit
    """
    config = load_config()
    root = _starters_dir(starters_dir, config)

    try:
        templates = collect_templates(root, audit=audit or config['starters']['audit'])
    except OSError as e:
        logger.error(f"Could not list starters in {root}: {e}", exc_info=True)
        click.echo(f"❌ Error: {e}")
        sys.exit(1)

    render_templates(templates, as_json=as_json)


@click.command('new')
@click.argument('starter')
@click.argument('destination', type=click.Path(file_okay=False))
@click.option('-n', '--lib-name', required=True, help='Library name substituted for LibName rules')
@click.option('--secret', help='Secret substituted for Secret rules (default: random)')
@click.option('-d', '--starters-dir', type=click.Path(file_okay=False),
              help='Directory holding the starters (default: use config)')
@click.option('--audit', is_flag=True, help='Warn about starters with a broken generator.yaml')
@click.option('--include-hidden', is_flag=True, help='Also rewrite dot-files and dot-directories')
@click.option('--no-ignore', is_flag=True, help='Also rewrite files excluded by .ignore/.gitignore files')
@click.option('--json', 'as_json', is_flag=True, help='Output in JSON format.')
def new_handler(starter, destination, lib_name, secret, starters_dir, audit,
                include_hidden, no_ignore, as_json):
    """
    Create a new project from a starter.

    Copies STARTER into DESTINATION, which must not exist yet, then
    replaces the starter placeholders in the copy.

    Examples:

        starterkit new saas ./blog --lib-name blog
    """
    config = load_config()
    root = _starters_dir(starters_dir, config)
    target = Path(destination)

    if target.exists():
        click.echo(f"❌ Error: destination already exists: {target}")
        sys.exit(1)

    try:
        template = get_template(root, starter, audit=audit or config['starters']['audit'])
        shutil.copytree(root / starter, target, symlinks=True)
    except (KeyError, OSError) as e:
        logger.error(f"Could not create project from starter '{starter}': {e}", exc_info=True)
        click.echo(f"❌ Error: {e}")
        sys.exit(1)

    summary = generate(
        template,
        target,
        _placeholders(lib_name, secret, config),
        max_workers=config['generation']['max_workers'],
        skip_hidden=not include_hidden and config['generation']['skip_hidden'],
        respect_ignore_files=not no_ignore and config['generation']['respect_ignore_files'],
    )
    render_summary(summary, as_json=as_json)


@click.command('apply')
@click.argument('directory', type=click.Path(exists=True, file_okay=False))
@click.option('-n', '--lib-name', required=True, help='Library name substituted for LibName rules')
@click.option('--secret', help='Secret substituted for Secret rules (default: random)')
@click.option('--include-hidden', is_flag=True, help='Also rewrite dot-files and dot-directories')
@click.option('--no-ignore', is_flag=True, help='Also rewrite files excluded by .ignore/.gitignore files')
@click.option('--json', 'as_json', is_flag=True, help='Output in JSON format.')
def apply_handler(directory, lib_name, secret, include_hidden, no_ignore, as_json):
    """
    Replace starter placeholders in place.

    DIRECTORY must still contain its generator.yaml, which is removed
    once the rules have run.
    """
    config = load_config()
    source = Path(directory)

    try:
        template = load_template(source / GENERATOR_FILE_NAME)
    except (OSError, ValueError) as e:
        logger.error(f"Could not load {GENERATOR_FILE_NAME} from {source}: {e}", exc_info=True)
        click.echo(f"❌ Error: {e}")
        sys.exit(1)

    summary = generate(
        template,
        source,
        _placeholders(lib_name, secret, config),
        max_workers=config['generation']['max_workers'],
        skip_hidden=not include_hidden and config['generation']['skip_hidden'],
        respect_ignore_files=not no_ignore and config['generation']['respect_ignore_files'],
    )
    render_summary(summary, as_json=as_json)
