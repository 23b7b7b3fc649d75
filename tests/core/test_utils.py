from pathlib import Path

import pytest

from impact_flow.core.utils import is_ignored, match_file_against_pattern, read_gitignore

ROOT = Path("/repo")


@pytest.mark.parametrize(
    "relative, pattern, expected",
    [
        ("build/gen.py", "build/", True),
        ("pkg/build/gen.py", "build/", True),
        ("build.py", "build/", False),
        ("pkg/build/gen.py", "/build/", False),
        ("build/gen.py", "/build/", True),
        ("pkg/secret.py", "secret.py", True),
        ("pkg/gen_models.py", "gen_*.py", True),
        ("pkg/models.py", "!models.py", False),
        ("docs/conf.py", "docs/*.py", True),
    ],
)
def test_match_file_against_pattern(relative, pattern, expected):
    assert match_file_against_pattern(ROOT / relative, pattern, ROOT, ROOT) is expected


def test_pattern_outside_owning_directory_does_not_match():
    assert not match_file_against_pattern(ROOT / "app/x.py", "x.py", ROOT / "lib", ROOT)


def test_is_ignored_combines_configured_and_gitignore_patterns():
    gitignore = [("*.generated.py", ROOT)]

    assert is_ignored(ROOT / "venv/lib/site.py", ROOT, ignored_patterns=["venv"])
    assert is_ignored(ROOT / "api/client.generated.py", ROOT, gitignore_patterns=gitignore)
    assert not is_ignored(ROOT / "api/client.py", ROOT, ["venv"], gitignore)


def test_read_gitignore_skips_comments_and_blanks(tmp_path):
    path = tmp_path / ".gitignore"
    path.write_text("# build output\n\nbuild/\n  *.log  \n", encoding="utf-8")

    assert read_gitignore(path) == [("build/", tmp_path), ("*.log", tmp_path)]
