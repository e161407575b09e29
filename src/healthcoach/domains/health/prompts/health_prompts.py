"""MCP Prompts: pre-built interaction templates for coaching journeys."""

from __future__ import annotations

from fastmcp import FastMCP


def register_health_prompts(mcp: FastMCP) -> None:
    """Register health coach MCP prompts."""

    @mcp.prompt()
    def weekly_checkin_prompt(subject_id: str) -> str:
        """Prompt template for a weekly blood pressure check-in."""
        return f"""Let's do my weekly blood pressure check-in (subject: {subject_id}).

1. Show my blood pressure and blood sugar summary for the last 7 days
2. Compare my readings by measurement state
3. Give me a short coaching comment on what I could try this week

Please keep it encouraging and remind me this is not medical advice."""

    @mcp.prompt()
    def lifestyle_review_prompt(subject_id: str, window_days: int = 30) -> str:
        """Prompt template for reviewing how habits relate to blood pressure."""
        return f"""I'd like to understand how my habits relate to my blood pressure \
over the last {window_days} days (subject: {subject_id}).

1. Show my blood pressure grouped by sleep, exercise and stress
2. Describe any tendencies carefully, without claiming cause and effect
3. Point out groups with too few readings to say much about

Please finish by reminding me to talk to a medical professional."""
