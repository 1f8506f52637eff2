"""
Reader for `go list -m` output.

Accepts both `go list -m -json all` (a stream of concatenated JSON objects)
and the plain `go list -m all` text form.
"""

import json
import logging
from typing import Any, Optional

from core.exceptions import ValidationException
from core.models import DependencyProject

logger = logging.getLogger(__name__)


def _module_to_project(module: dict[str, Any]) -> Optional[DependencyProject]:
    """
    Convert one `go list -m -json` object.

    A replacement wins over the original module. Modules without a version
    (the main module, directory replacements) yield None.
    """
    replace = module.get("Replace")
    if replace:
        name, version = replace.get("Path", ""), replace.get("Version", "")
    else:
        name, version = module.get("Path", ""), module.get("Version", "")

    if not name or not version:
        logger.debug(f"Skipping module without version: {module.get('Path', '')}")
        return None

    update = module.get("Update") or {}
    return DependencyProject(
        name=name,
        version=version,
        update_version=update.get("Version") or None,
    )


def _decode_json_stream(text: str) -> list[dict[str, Any]]:
    """
    Decode concatenated JSON objects.

    Raises:
        ValueError: If the text is not a stream of JSON objects
    """
    decoder = json.JSONDecoder()
    modules = []
    position = 0
    length = len(text)

    while True:
        while position < length and text[position].isspace():
            position += 1
        if position >= length:
            break
        obj, position = decoder.raw_decode(text, position)
        if not isinstance(obj, dict):
            raise ValueError(f"Expected a JSON object, got {type(obj).__name__}")
        modules.append(obj)

    return modules


def _parse_text_line(line: str) -> Optional[DependencyProject]:
    """
    Parse one line of `go list -m all` output.

    Handles "name version", "name version [update]" and
    "name version => replacement replacementVersion".
    """
    if "=>" in line:
        line = line.split("=>", 1)[1]

    fields = line.split()
    if len(fields) < 2:
        return None

    update_version = None
    if len(fields) > 2 and fields[2].startswith("[") and fields[2].endswith("]"):
        update_version = fields[2][1:-1] or None

    return DependencyProject(name=fields[0], version=fields[1], update_version=update_version)


def parse_go_list(text: str) -> list[DependencyProject]:
    """
    Read dependencies from `go list -m` output.

    Args:
        text: Output of `go list -m -json all` or `go list -m all`

    Returns:
        Dependencies in input order, without duplicates

    Raises:
        ValidationException: If the input is empty
    """
    if not text or not text.strip():
        raise ValidationException("No dependencies given, pipe in the output of `go list -m -json all`", "input")

    try:
        projects = [_module_to_project(m) for m in _decode_json_stream(text)]
        logger.debug("Parsed dependencies from go list JSON output")
    except ValueError:
        logger.debug("Input is not go list JSON, falling back to text format")
        projects = [_parse_text_line(line) for line in text.splitlines()]

    seen = set()
    dependencies = []
    for project in projects:
        if project is None or (project.name, project.version) in seen:
            continue
        seen.add((project.name, project.version))
        dependencies.append(project)

    logger.info(f"Read {len(dependencies)} dependencies")
    return dependencies
