"""
Starter discovery.

Scans the immediate subdirectories of a starters root for a
``generator.yaml`` descriptor. A broken starter never prevents the others
from being listed: problems scoped to one subdirectory are logged and that
starter is left out.
"""

import os
import logging
from pathlib import Path
from typing import Dict

from .template import GENERATOR_FILE_NAME, Template, TemplateError, load_template

logger = logging.getLogger(__name__)


def collect_templates(path, audit: bool = False) -> Dict[str, Template]:
    """
    Collect starter templates from the directories directly under ``path``.

    Args:
        path: Root directory holding one directory per starter.
        audit: Report unreadable or malformed descriptors as warnings
            instead of debug messages. Meant for starter authors.

    Returns:
        Mapping of starter directory name to Template, ordered by name.

    Raises:
        OSError: Only if ``path`` itself cannot be listed.
    """
    root = Path(path)
    logger.debug(f"Collecting starter templates from {root}")

    with os.scandir(root) as it:
        entries = sorted(it, key=lambda e: e.name)

    report = logger.warning if audit else logger.debug
    templates = {}

    for entry in entries:
        try:
            if not entry.is_dir(follow_symlinks=False):
                continue
        except OSError as e:
            logger.debug(f"Could not determine type of {entry.path}: {e}")
            continue

        generator_file = root / entry.name / GENERATOR_FILE_NAME
        logger.debug(f"Parsing generator file {generator_file}")

        if not generator_file.exists():
            logger.debug(f"Generator file not found: {generator_file}")
            continue

        try:
            template = load_template(generator_file)
        except OSError as e:
            report(f"Could not open generator file {generator_file}: {e}")
            continue
        except TemplateError as e:
            report(f"Invalid format in {generator_file}: {e}")
            continue

        templates[entry.name] = template

    logger.debug(f"Found {len(templates)} starter template(s) in {root}")
    return templates


def get_template(path, name: str, audit: bool = False) -> Template:
    """
    Look up a single starter by directory name.

    Raises:
        KeyError: If no valid starter with that name exists under ``path``.
    """
    templates = collect_templates(path, audit=audit)
    try:
        return templates[name]
    except KeyError as exc:
        available = ', '.join(templates) or 'none'
        raise KeyError(f"Starter '{name}' not found (available: {available})") from exc
