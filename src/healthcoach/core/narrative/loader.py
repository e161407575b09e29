"""Narrative template loader: reads YAML definitions from disk."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from healthcoach.core.narrative.models import (
    GroupTable,
    NarrativeFraming,
    NarrativeGuardrails,
    NarrativeTemplate,
)
from healthcoach.core.narrative.registry import TemplateRegistry

logger = logging.getLogger(__name__)

# Packaged templates: src/healthcoach/domains/health/narratives/
DEFAULT_TEMPLATE_DIR = (
    Path(__file__).resolve().parent.parent.parent / "domains" / "health" / "narratives"
)


def load_template_directory(directory: str | Path, registry: TemplateRegistry) -> int:
    """Load all YAML narrative templates from a directory.

    Returns the number of templates loaded. Files starting with an
    underscore are skipped.
    """
    directory = Path(directory)
    if not directory.is_dir():
        logger.warning("Narrative template directory does not exist: %s", directory)
        return 0

    count = 0
    for path in sorted(directory.glob("*.yaml")):
        if path.name.startswith("_"):
            continue
        template = load_template_file(path)
        registry.register(template)
        count += 1
        logger.info("Loaded narrative template: %s (v%s)", template.id, template.version)
    return count


def load_template_file(path: Path) -> NarrativeTemplate:
    """Parse a YAML file into a NarrativeTemplate instance."""
    with open(path, encoding="utf-8") as f:
        data: dict[str, Any] = yaml.safe_load(f)

    framing_data = data.get("framing", {})
    guardrails_data = data.get("guardrails", {})

    return NarrativeTemplate(
        id=data["id"],
        version=str(data["version"]),
        display_name=data.get("display_name", data["id"]),
        description=data.get("description", "").strip(),
        framing=NarrativeFraming(
            role=framing_data.get("role", "").strip(),
            tone=framing_data.get("tone", "").strip(),
        ),
        guardrails=NarrativeGuardrails(
            disclaimers=guardrails_data.get("disclaimers", []),
            prohibited_actions=guardrails_data.get("prohibited_actions", []),
        ),
        phrases={k: str(v) for k, v in data.get("phrases", {}).items()},
        tables={
            name: GroupTable(
                heading=table["heading"],
                labels=dict(table.get("labels", {})),
            )
            for name, table in data.get("tables", {}).items()
        },
        guidance=list(data.get("guidance", [])),
        fallback_message=data.get("fallback_message", "").strip(),
        tags=data.get("tags", []),
    )


def load_default_templates() -> TemplateRegistry:
    """Build a registry holding the packaged templates."""
    registry = TemplateRegistry()
    load_template_directory(DEFAULT_TEMPLATE_DIR, registry)
    return registry
