"""Tests for narrative template loading and the registry."""

from __future__ import annotations

import pytest

from healthcoach.core.narrative.loader import (
    DEFAULT_TEMPLATE_DIR,
    load_default_templates,
    load_template_directory,
    load_template_file,
)
from healthcoach.core.narrative.registry import TemplateRegistry

_MINIMAL = """\
id: custom
version: 2.1
phrases:
  greeting: "Hello {name}"
"""


class TestPackagedTemplates:
    def test_all_variants_load(self):
        registry = load_default_templates()
        assert {t.id for t in registry.all()} == {"coaching", "lifestyle", "state_insight"}

    def test_versions_are_strings(self):
        for template in load_default_templates().all():
            assert template.version == "1.0.0"

    def test_lifestyle_tables_keep_label_order(self):
        lifestyle = load_default_templates().require("lifestyle")
        assert list(lifestyle.tables) == ["sleep", "exercise", "stress"]
        assert list(lifestyle.tables["exercise"].labels) == ["yes", "no"]
        assert list(lifestyle.tables["stress"].labels) == ["low", "mid", "high"]

    def test_every_template_has_disclaimers(self):
        for template in load_default_templates().all():
            assert template.guardrails.disclaimers


class TestLoader:
    def test_minimal_file_gets_defaults(self, tmp_path):
        path = tmp_path / "custom.yaml"
        path.write_text(_MINIMAL, encoding="utf-8")
        template = load_template_file(path)
        assert template.version == "2.1"
        assert template.display_name == "custom"
        assert template.phrase("greeting", name="Ann") == "Hello Ann"
        assert template.tables == {}

    def test_missing_phrase_names_the_template(self, tmp_path):
        path = tmp_path / "custom.yaml"
        path.write_text(_MINIMAL, encoding="utf-8")
        with pytest.raises(KeyError, match="custom"):
            load_template_file(path).phrase("farewell")

    def test_underscore_files_are_skipped(self, tmp_path):
        (tmp_path / "custom.yaml").write_text(_MINIMAL, encoding="utf-8")
        (tmp_path / "_draft.yaml").write_text(_MINIMAL.replace("custom", "draft"), encoding="utf-8")
        registry = TemplateRegistry()
        assert load_template_directory(tmp_path, registry) == 1
        assert registry.get("draft") is None

    def test_missing_directory_loads_nothing(self, tmp_path):
        assert load_template_directory(tmp_path / "absent", TemplateRegistry()) == 0

    def test_default_directory_exists(self):
        assert DEFAULT_TEMPLATE_DIR.is_dir()


class TestRegistry:
    def test_duplicate_id_rejected(self, tmp_path):
        path = tmp_path / "custom.yaml"
        path.write_text(_MINIMAL, encoding="utf-8")
        registry = TemplateRegistry()
        registry.register(load_template_file(path))
        with pytest.raises(ValueError, match="Duplicate"):
            registry.register(load_template_file(path))

    def test_require_unknown(self):
        with pytest.raises(LookupError):
            TemplateRegistry().require("missing")
