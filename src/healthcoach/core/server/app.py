"""Health Coach MCP Server: application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging

from fastmcp import FastMCP

from healthcoach.core.audit.logger import CoachLogWriter
from healthcoach.core.config.settings import Settings, get_settings
from healthcoach.core.llm.client import CircuitBreaker, NarrativeGenerator
from healthcoach.core.llm.provider import LLMProvider, create_provider
from healthcoach.core.narrative.loader import DEFAULT_TEMPLATE_DIR, load_default_templates
from healthcoach.core.storage.database import HealthDatabase
from healthcoach.core.storage.encryption import EncryptionError, FieldEncryptor
from healthcoach.core.storage.repository import HealthRepository
from healthcoach.domains.health.domain_logic.coach_service import HealthCoachService
from healthcoach.domains.health.prompts.health_prompts import register_health_prompts
from healthcoach.domains.health.resources.narratives import register_narrative_resources

logger = logging.getLogger(__name__)

SERVER_NAME = "Health Coach"
SERVER_VERSION = "0.1.0"


def _select_provider(settings: Settings) -> tuple[str, LLMProvider]:
    """Pick the configured provider, falling back to mock when its key is missing."""
    if settings.llm_provider == "mock":
        provider_name, api_key, model = "mock", "", ""
    elif settings.llm_provider == "anthropic":
        api_key = settings.anthropic_api_key
        model = settings.anthropic_model
        provider_name = "anthropic" if api_key else "mock"
    elif settings.llm_provider == "openai":
        api_key = settings.openai_api_key
        model = settings.openai_model
        provider_name = "openai" if api_key else "mock"
    else:  # pragma: no cover
        raise ValueError(f"Unknown LLM provider: {settings.llm_provider!r}")

    if provider_name == "mock" and settings.llm_provider != "mock":
        logger.warning(
            "No API key configured for provider '%s'; falling back to mock provider",
            settings.llm_provider,
        )
    return provider_name, create_provider(provider_name=provider_name, api_key=api_key, model=model)


def create_app(
    *,
    database_override: HealthDatabase | None = None,
    encryptor_override: FieldEncryptor | None = None,
    provider_override: LLMProvider | None = None,
    settings_override: Settings | None = None,
) -> FastMCP:
    """Create and configure the Health Coach MCP server.

    This is the main application factory. It:
    1. Creates the FastMCP server instance
    2. Loads the narrative templates
    3. Creates the narrative generator (provider, timeout, retry, breaker)
    4. Initializes the encrypted record store and coach log
    5. Registers all tools, resources, and prompts
    """
    settings = settings_override or get_settings()

    # --- Server instance ---
    server = FastMCP(
        SERVER_NAME,
        instructions=(
            "Personal blood pressure and blood sugar tracker. Records readings, "
            "summarises them over time windows, compares measurement states and "
            "lifestyle habits, and writes gentle AI coaching comments."
        ),
    )

    # --- Narrative templates ---
    templates = load_default_templates()
    logger.info("Loaded %d narrative templates from %s", len(templates.all()), DEFAULT_TEMPLATE_DIR)

    # --- Narrative generator ---
    if provider_override is not None:
        provider_name, provider = "override", provider_override
    else:
        provider_name, provider = _select_provider(settings)
    generator = NarrativeGenerator(
        provider,
        provider_name=provider_name,
        timeout_seconds=settings.llm_timeout_seconds,
        max_retries=settings.llm_max_retries,
        breaker=CircuitBreaker(
            threshold=settings.llm_breaker_threshold,
            cooldown_seconds=settings.llm_breaker_cooldown_seconds,
        ),
    )

    # --- Encrypted storage ---
    repository: HealthRepository | None = None
    coach_log: CoachLogWriter | None = None
    try:
        encryptor = encryptor_override
        if encryptor is None and settings.encryption_key:
            encryptor = FieldEncryptor(settings.encryption_key)
        if encryptor is not None:
            health_db = database_override or HealthDatabase(settings.db_path)
            health_db.initialize()
            repository = HealthRepository(health_db, encryptor)
            coach_log = CoachLogWriter(health_db, encryptor)
            logger.info(
                "Health record store initialized: %s (schema v%d)",
                "override" if database_override is not None else settings.db_path,
                health_db.get_schema_version(),
            )
        else:
            logger.info(
                "No ENCRYPTION_KEY configured, running without persistence. "
                "Set ENCRYPTION_KEY to enable record and coaching tools."
            )
    except EncryptionError as exc:
        logger.error("Failed to initialize storage: %s", exc)
        logger.warning("Continuing without persistence, record tools are disabled")

    # --- Register tools ---
    @server.tool
    def health_check() -> dict:
        """Check server health and return basic status information."""
        return {
            "status": "ok",
            "server": SERVER_NAME,
            "version": SERVER_VERSION,
            "templates_loaded": [f"{t.id}@{t.version}" for t in templates.all()],
            "llm_provider": provider_name,
            "storage_enabled": repository is not None,
            "demo_tools_enabled": repository is not None and settings.enable_demo_tools,
        }

    if repository is not None and coach_log is not None:
        from healthcoach.domains.health.tools.account_tools import register_account_tools
        from healthcoach.domains.health.tools.coach_tools import register_coach_tools
        from healthcoach.domains.health.tools.record_tools import register_record_tools
        from healthcoach.domains.health.tools.stats_tools import register_stats_tools

        service = HealthCoachService(
            repository,
            coach_log,
            generator,
            templates,
            max_output_tokens=settings.llm_max_output_tokens,
        )
        register_account_tools(server, repository)
        register_record_tools(server, repository)
        register_stats_tools(server, service)
        register_coach_tools(server, service)
        logger.info("Record, statistics and coaching tools registered")

        if settings.enable_demo_tools:
            from healthcoach.domains.health.tools.demo_tools import register_demo_tools

            register_demo_tools(server, repository, settings.demo_subject_id)
            logger.warning("Demo tools enabled for subject %s", settings.demo_subject_id)

    # --- Register resources ---
    register_narrative_resources(server, templates)

    # --- Register prompts ---
    register_health_prompts(server)

    return server


# Module-level instance for FastMCP discovery.
# Lazy: only created when this module is loaded directly (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
