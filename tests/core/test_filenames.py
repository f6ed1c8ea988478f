"""
Tests for the filename codec.
"""

import pytest
from datetime import date


class TestGenerateFilename:
    """Tests for generate_filename()."""

    def test_basic(self):
        from taskfiles.filenames import generate_filename

        assert generate_filename(1, "2025-07-24", "Deploy Web Application") == (
            "P1--2025-07-24--Deploy_Web_Application.md"
        )

    def test_accepts_date_object(self):
        from taskfiles.filenames import generate_filename

        assert generate_filename(2, date(2024, 1, 5), "x") == "P2--2024-01-05--x.md"

    @pytest.mark.parametrize("priority", [0, 6, 2.5, -1, "abc", None, True, [1]])
    def test_invalid_priority_becomes_3(self, priority):
        from taskfiles.filenames import generate_filename

        assert generate_filename(priority, "2025-07-24", "Task").startswith("P3--")

    @pytest.mark.parametrize("priority,expected", [(1, 1), (5, 5), ("2", 2), (4.0, 4)])
    def test_valid_priority_kept(self, priority, expected):
        from taskfiles.filenames import generate_filename

        assert generate_filename(priority, "2025-07-24", "Task").startswith(f"P{expected}--")

    @pytest.mark.parametrize("title", ["", "   ", "!!!", "?.,;:", None])
    def test_empty_title_is_untitled(self, title):
        from taskfiles.filenames import generate_filename

        assert generate_filename(3, "2025-07-24", title) == "P3--2025-07-24--untitled.md"

    def test_invalid_date_uses_today(self):
        from taskfiles.filenames import generate_filename, today

        assert generate_filename(3, "last tuesday", "Task") == f"P3--{today()}--Task.md"


class TestNormalizeTitle:
    """Tests for normalize_title()."""

    def test_truncates_to_fifty(self):
        from taskfiles.filenames import normalize_title

        slug = normalize_title(
            "This is a very long title that should be truncated to fifty characters maximum"
        )
        assert slug == "This_is_a_very_long_title_that_should_be_truncated"
        assert len(slug) <= 50

    def test_no_trailing_underscore_after_cut(self):
        from taskfiles.filenames import normalize_title

        slug = normalize_title("a" * 49 + " bcd")
        assert slug == "a" * 49

    def test_punctuation_and_spaces_collapse(self):
        from taskfiles.filenames import normalize_title

        assert normalize_title("  Fix: login -- page!! ") == "Fix_login_page"

    def test_drops_non_ascii(self):
        from taskfiles.filenames import normalize_title

        assert normalize_title("Café menu") == "Caf_menu"

    @pytest.mark.parametrize("title", [
        "Deploy Web Application",
        "Fix: login -- page!!",
        "This is a very long title that should be truncated to fifty characters maximum",
        "already_normal",
    ])
    def test_idempotent(self, title):
        from taskfiles.filenames import normalize_title

        once = normalize_title(title)
        assert normalize_title(once) == once


class TestClassifyFilename:
    """Tests for classify_filename() and the decode helpers."""

    @pytest.mark.parametrize("priority", [1, 2, 3, 4, 5])
    def test_round_trip(self, priority):
        from taskfiles.filenames import generate_filename, normalize_title, parse_filename

        title = "Plan the Q3 offsite, with snacks"
        parsed = parse_filename(generate_filename(priority, "2025-07-24", title))

        assert parsed is not None
        assert parsed.priority == priority
        assert parsed.date == "2025-07-24"
        assert parsed.title == normalize_title(title)
        assert normalize_title(parsed.title) == parsed.title

    def test_current_dialect(self):
        from taskfiles.filenames import classify_filename
        from taskfiles.models import FilenameDialect

        parsed = classify_filename("todos/P1--2025-07-24--Deploy_Web_Application.md")

        assert parsed.dialect is FilenameDialect.CURRENT
        assert parsed.priority == 1
        assert parsed.display_title == "Deploy Web Application"

    def test_collision_suffix_still_decodes(self):
        from taskfiles.filenames import parse_filename

        parsed = parse_filename("P3--2025-07-24--Plan-2.md")
        assert parsed is not None
        assert parsed.title == "Plan-2"

    def test_legacy_dialect(self):
        from taskfiles.filenames import classify_filename, parse_filename, parse_legacy_filename

        name = "2024-03-01-buy-milk.md"
        parsed = parse_legacy_filename(name)

        assert parsed is not None
        assert parsed.date == "2024-03-01"
        assert parsed.title == "buy milk"
        assert parse_filename(name) is None
        assert classify_filename(name).is_legacy

    @pytest.mark.parametrize("name", [
        "P1--2025-07-24--Deploy.md",
        "P5--2020-01-01--x.md",
        "2024-03-01-buy-milk.md",
        "2024-03-01-P1--thing.md",
        "README.md",
        ".gitkeep",
        "P6--2025-07-24--Bad.md",
        "P1--2025-07-24--Deploy.txt",
    ])
    def test_dialects_mutually_exclusive(self, name):
        from taskfiles.filenames import parse_filename, parse_legacy_filename

        assert not (parse_filename(name) and parse_legacy_filename(name))

    @pytest.mark.parametrize("name", ["README.md", ".gitkeep", "notes.txt", "P6--2025-07-24--x.md"])
    def test_unrecognized(self, name):
        from taskfiles.filenames import classify_filename, is_task_filename
        from taskfiles.models import FilenameDialect

        assert classify_filename(name).dialect is FilenameDialect.UNRECOGNIZED
        assert not is_task_filename(name)


class TestMigrateLegacyFilename:
    """Tests for migrate_legacy_filename()."""

    def test_migrates_with_priority(self):
        from taskfiles.filenames import migrate_legacy_filename

        assert migrate_legacy_filename("todos/2024-03-01-buy-milk.md", 2) == (
            "todos/P2--2024-03-01--buy_milk.md"
        )

    def test_default_priority(self):
        from taskfiles.filenames import migrate_legacy_filename

        assert migrate_legacy_filename("2024-03-01-buy-milk.md") == "P3--2024-03-01--buy_milk.md"

    def test_idempotent(self):
        from taskfiles.filenames import migrate_legacy_filename

        once = migrate_legacy_filename("todos/2024-03-01-buy-milk.md", 1)
        assert migrate_legacy_filename(once, 4) == once

    def test_unrecognized_returns_none(self):
        from taskfiles.filenames import migrate_legacy_filename

        assert migrate_legacy_filename("todos/README.md") is None


class TestCoercePriority:
    """Coercion is reported separately from a legitimate 3."""

    def test_legitimate_three(self):
        from taskfiles.filenames import coerce_priority

        assert coerce_priority(3) == (3, False)

    def test_coerced_three(self):
        from taskfiles.filenames import coerce_priority

        assert coerce_priority(9) == (3, True)


class TestWithPriority:
    """Tests for with_priority()."""

    def test_keeps_slug_and_suffix(self):
        from taskfiles.filenames import with_priority

        assert with_priority("P3--2025-01-01--Plan-1.md", 1) == "P1--2025-01-01--Plan-1.md"

    def test_invalid_priority_becomes_3(self):
        from taskfiles.filenames import with_priority

        assert with_priority("P1--2025-01-01--Plan.md", 8) == "P3--2025-01-01--Plan.md"

    def test_legacy_returns_none(self):
        from taskfiles.filenames import with_priority

        assert with_priority("2024-03-01-buy-milk.md", 1) is None
