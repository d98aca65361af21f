"""Tests for starter discovery in registry.py."""

import logging

import pytest
from unittest.mock import patch

from starterkit.registry import collect_templates, get_template
from starterkit.template import LibName, load_template as real_load


VALID_DESCRIPTOR = """
description: {description}
rules:
  - pattern: __APP_NAME__
    kind: LibName
"""


def create_starter(fs, root, name, descriptor=None, description="A starter"):
    """Helper to create a fake starter directory."""
    starter = f"{root}/{name}"
    fs.create_dir(starter)
    fs.create_file(f"{starter}/README.md", contents="# __APP_NAME__\n")
    if descriptor is None:
        descriptor = VALID_DESCRIPTOR.format(description=description)
    if descriptor is not False:
        fs.create_file(f"{starter}/generator.yaml", contents=descriptor)
    return starter


class TestCollectTemplates:
    def test_empty_root(self, fs):
        fs.create_dir("/starters")

        assert collect_templates("/starters") == {}

    def test_single_starter(self, fs):
        create_starter(fs, "/starters", "saas", description="SaaS app")

        templates = collect_templates("/starters")

        assert list(templates) == ["saas"]
        assert templates["saas"].description == "SaaS app"
        assert templates["saas"].rules[0].kind == LibName()

    def test_result_ordered_by_name(self, fs):
        for name in ["rest-api", "saas", "lightweight", "base"]:
            create_starter(fs, "/starters", name)

        templates = collect_templates("/starters")

        assert list(templates) == ["base", "lightweight", "rest-api", "saas"]

    def test_directory_without_descriptor_skipped(self, fs):
        create_starter(fs, "/starters", "saas")
        create_starter(fs, "/starters", ".github", descriptor=False)

        assert list(collect_templates("/starters")) == ["saas"]

    def test_files_at_root_ignored(self, fs):
        create_starter(fs, "/starters", "saas")
        fs.create_file("/starters/generator.yaml", contents=VALID_DESCRIPTOR.format(description="x"))
        fs.create_file("/starters/README.md")

        assert list(collect_templates("/starters")) == ["saas"]

    def test_malformed_descriptors_skipped(self, fs):
        create_starter(fs, "/starters", "good")
        create_starter(fs, "/starters", "bad-yaml", descriptor="description: [oops\n")
        create_starter(fs, "/starters", "no-description", descriptor="rules: []\n")
        create_starter(fs, "/starters", "bad-regex", descriptor=(
            "description: x\nrules:\n  - pattern: '('\n    kind: LibName\n"
        ))
        create_starter(fs, "/starters", "bad-kind", descriptor=(
            "description: x\nrules:\n  - pattern: a\n    kind: 12\n"
        ))
        create_starter(fs, "/starters", "empty", descriptor="")
        create_starter(fs, "/starters", "huge-repeat", descriptor=(
            "description: x\nrules:\n  - pattern: 'a{99999999999}'\n    kind: LibName\n"
        ))
        create_starter(fs, "/starters", "deep-nesting", descriptor=(
            "description: x\nrules:\n  - pattern: '" + "(" * 2000 + "a" + ")" * 2000 + "'\n"
            "    kind: LibName\n"
        ))
        create_starter(fs, "/starters", "deep-yaml", descriptor=(
            "description: x\nrules: " + "[" * 5000 + "]" * 5000 + "\n"
        ))

        assert list(collect_templates("/starters")) == ["good"]

    def test_descriptor_that_is_a_directory_skipped(self, fs):
        create_starter(fs, "/starters", "good")
        fs.create_dir("/starters/weird/generator.yaml")

        assert list(collect_templates("/starters")) == ["good"]

    def test_unreadable_descriptor_skipped(self, fs):
        create_starter(fs, "/starters", "a")
        create_starter(fs, "/starters", "b")

        def fake_load(path):
            if "/a/" in str(path):
                raise PermissionError("denied")
            return real_load(path)

        with patch('starterkit.registry.load_template', side_effect=fake_load):
            templates = collect_templates("/starters")

        assert list(templates) == ["b"]

    def test_symlinked_starter_directory_skipped(self, fs):
        create_starter(fs, "/starters", "real")
        fs.create_symlink("/starters/alias", "/starters/real")

        assert list(collect_templates("/starters")) == ["real"]

    def test_missing_root_raises(self, fs):
        with pytest.raises(OSError):
            collect_templates("/does/not/exist")

    def test_root_is_a_file_raises(self, fs):
        fs.create_file("/starters")

        with pytest.raises(OSError):
            collect_templates("/starters")


class TestAuditMode:
    def test_broken_starter_logged_at_debug_by_default(self, fs, caplog):
        create_starter(fs, "/starters", "broken", descriptor="description: [oops\n")

        with caplog.at_level(logging.DEBUG, logger="starterkit.registry"):
            collect_templates("/starters")

        broken = [r for r in caplog.records if "broken" in r.getMessage()
                  and "Invalid format" in r.getMessage()]
        assert broken
        assert all(r.levelno == logging.DEBUG for r in broken)

    def test_broken_starter_logged_as_warning_in_audit_mode(self, fs, caplog):
        create_starter(fs, "/starters", "broken", descriptor="description: [oops\n")
        create_starter(fs, "/starters", "bare", descriptor=False)

        with caplog.at_level(logging.DEBUG, logger="starterkit.registry"):
            templates = collect_templates("/starters", audit=True)

        assert templates == {}
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "broken" in warnings[0].getMessage()


class TestGetTemplate:
    def test_found(self, fs):
        create_starter(fs, "/starters", "saas", description="SaaS app")

        assert get_template("/starters", "saas").description == "SaaS app"

    def test_missing_lists_available(self, fs):
        create_starter(fs, "/starters", "saas")
        create_starter(fs, "/starters", "rest-api")

        with pytest.raises(KeyError) as excinfo:
            get_template("/starters", "nope")

        assert "rest-api, saas" in str(excinfo.value)
