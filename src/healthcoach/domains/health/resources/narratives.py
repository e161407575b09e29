"""MCP Resources for narrative template discovery."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from fastmcp import FastMCP

if TYPE_CHECKING:
    from healthcoach.core.narrative.registry import TemplateRegistry


def register_narrative_resources(mcp: FastMCP, registry: TemplateRegistry) -> None:
    """Register the narrative template registry resource on the MCP server."""

    @mcp.resource("narrative://health/templates")
    def narrative_template_registry_resource() -> str:
        """Discover the loaded narrative templates and their contract versions."""
        templates = registry.all()
        return json.dumps(
            {
                "template_count": len(templates),
                "templates": [
                    {
                        "id": t.id,
                        "version": t.version,
                        "display_name": t.display_name,
                        "description": t.description,
                        "tables": list(t.tables.keys()),
                        "disclaimers": t.guardrails.disclaimers,
                        "tags": t.tags,
                    }
                    for t in templates
                ],
            },
            indent=2,
        )
