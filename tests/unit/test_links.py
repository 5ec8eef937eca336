"""Tests for activation link management."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from silk.plugins.config import RepoRef, Skill
from silk.plugins.errors import ForeignLinkError, NameCollisionError
from silk.plugins.links import LinkManager

REF = RepoRef("github.com", "acme", "tools")

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_skill(tmp_path: Path, name: str = "lint", subdir: str | None = None) -> Skill:
    """Create a skill directory under a fake plugin and return its Skill."""
    source = tmp_path / "cache" / "tools" / (subdir or name)
    source.mkdir(parents=True, exist_ok=True)
    (source / "SKILL.md").write_text(f"# {name}\n", encoding="utf-8")
    return Skill.create(REF, name, source)


@pytest.fixture
def manager(tmp_path: Path) -> LinkManager:
    return LinkManager(tmp_path / "skills")


# ---------------------------------------------------------------------------
# link / is_linked
# ---------------------------------------------------------------------------


class TestLink:
    """Tests for LinkManager.link()."""

    def test_creates_symlink(self, tmp_path: Path, manager: LinkManager) -> None:
        """Test a symlink named after the qualified name points at the skill."""
        skill = _make_skill(tmp_path)
        manager.link(skill)

        link = tmp_path / "skills" / "acme:tools:lint"
        assert link.is_symlink()
        assert link.resolve() == skill.source_dir.resolve()
        assert manager.is_linked(skill)

    def test_creates_activation_dir(self, tmp_path: Path, manager: LinkManager) -> None:
        """Test the activation directory is created on first link."""
        assert not (tmp_path / "skills").exists()
        manager.link(_make_skill(tmp_path))
        assert (tmp_path / "skills").is_dir()

    def test_idempotent(self, tmp_path: Path, manager: LinkManager) -> None:
        """Test linking twice is a no-op the second time."""
        skill = _make_skill(tmp_path)
        manager.link(skill)
        manager.link(skill)
        assert manager.linked_names() == ["acme:tools:lint"]

    def test_collision_with_file(self, tmp_path: Path, manager: LinkManager) -> None:
        """Test a regular file at the link path is never overwritten."""
        skill = _make_skill(tmp_path)
        (tmp_path / "skills").mkdir()
        blocker = tmp_path / "skills" / "acme:tools:lint"
        blocker.write_text("mine", encoding="utf-8")

        with pytest.raises(NameCollisionError):
            manager.link(skill)
        assert blocker.read_text(encoding="utf-8") == "mine"

    def test_collision_with_foreign_link(self, tmp_path: Path, manager: LinkManager) -> None:
        """Test a link to another directory is never overwritten."""
        skill = _make_skill(tmp_path)
        other = tmp_path / "other"
        other.mkdir()
        (tmp_path / "skills").mkdir()
        (tmp_path / "skills" / "acme:tools:lint").symlink_to(other)

        with pytest.raises(NameCollisionError):
            manager.link(skill)
        assert os.readlink(tmp_path / "skills" / "acme:tools:lint") == str(other)

    def test_broken_link_is_not_linked(self, tmp_path: Path, manager: LinkManager) -> None:
        """Test a dangling link does not count as linked."""
        skill = _make_skill(tmp_path)
        (tmp_path / "skills").mkdir()
        (tmp_path / "skills" / "acme:tools:lint").symlink_to(tmp_path / "gone")
        assert not manager.is_linked(skill)

    def test_relative_link_recognized(self, tmp_path: Path, manager: LinkManager) -> None:
        """Test a relative link to the skill counts as linked."""
        skill = _make_skill(tmp_path)
        (tmp_path / "skills").mkdir()
        (tmp_path / "skills" / "acme:tools:lint").symlink_to(Path("..") / "cache" / "tools" / "lint")
        assert manager.is_linked(skill)

    def test_relative_source_dir(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test a skill with a relative source directory gets an absolute link."""
        monkeypatch.chdir(tmp_path)
        manager = LinkManager(Path("skills"))
        source = Path("cache") / "tools" / "lint"
        source.mkdir(parents=True)
        skill = Skill.create(REF, "lint", source)

        manager.link(skill)

        link = tmp_path / "skills" / "acme:tools:lint"
        assert manager.activation_dir == tmp_path / "skills"
        assert Path(os.readlink(link)).is_absolute()
        assert link.resolve() == (tmp_path / source).resolve()
        assert manager.is_linked(skill)
        assert manager.toggle(skill).is_linked is False


# ---------------------------------------------------------------------------
# unlink / toggle
# ---------------------------------------------------------------------------


class TestUnlink:
    """Tests for LinkManager.unlink() and toggle()."""

    def test_unlink_removes_link(self, tmp_path: Path, manager: LinkManager) -> None:
        """Test unlink removes only the link, not the skill."""
        skill = _make_skill(tmp_path)
        manager.link(skill)
        manager.unlink(skill)

        assert not manager.is_linked(skill)
        assert not os.path.lexists(tmp_path / "skills" / "acme:tools:lint")
        assert (skill.source_dir / "SKILL.md").is_file()

    def test_unlink_never_linked(self, tmp_path: Path, manager: LinkManager) -> None:
        """Test unlinking a skill that was never linked succeeds."""
        skill = _make_skill(tmp_path)
        manager.unlink(skill)
        assert not manager.is_linked(skill)

    def test_unlink_foreign_link(self, tmp_path: Path, manager: LinkManager) -> None:
        """Test a link repointed elsewhere is left alone."""
        skill = _make_skill(tmp_path)
        other = tmp_path / "other"
        other.mkdir()
        (tmp_path / "skills").mkdir()
        link = tmp_path / "skills" / "acme:tools:lint"
        link.symlink_to(other)

        with pytest.raises(ForeignLinkError) as exc_info:
            manager.unlink(skill)
        assert exc_info.value.target == str(other)
        assert link.is_symlink()

    def test_unlink_regular_file(self, tmp_path: Path, manager: LinkManager) -> None:
        """Test a regular file at the link path is left alone."""
        skill = _make_skill(tmp_path)
        (tmp_path / "skills").mkdir()
        blocker = tmp_path / "skills" / "acme:tools:lint"
        blocker.write_text("mine", encoding="utf-8")

        with pytest.raises(ForeignLinkError):
            manager.unlink(skill)
        assert blocker.is_file()

    def test_toggle_twice_restores_state(self, tmp_path: Path, manager: LinkManager) -> None:
        """Test toggling twice returns to the original state."""
        skill = _make_skill(tmp_path)

        toggled = manager.toggle(skill)
        assert toggled.is_linked is True
        restored = manager.toggle(toggled)
        assert restored.is_linked is False
        assert manager.linked_names() == []

    def test_toggle_ignores_stale_flag(self, tmp_path: Path, manager: LinkManager) -> None:
        """Test toggle acts on disk state, not the record's is_linked."""
        skill = _make_skill(tmp_path)
        manager.link(skill)
        assert skill.is_linked is False
        assert manager.toggle(skill).is_linked is False


# ---------------------------------------------------------------------------
# unlink_under / reconcile
# ---------------------------------------------------------------------------


class TestBulkOperations:
    """Tests for unlink_under() and reconcile()."""

    def test_unlink_under_removes_plugin_links(self, tmp_path: Path, manager: LinkManager) -> None:
        """Test every link into the plugin directory is removed."""
        lint = _make_skill(tmp_path, "lint")
        review = _make_skill(tmp_path, "review")
        manager.link(lint)
        manager.link(review)

        outside = tmp_path / "elsewhere"
        outside.mkdir()
        (tmp_path / "skills" / "mine").symlink_to(outside)

        removed = manager.unlink_under(tmp_path / "cache" / "tools")
        assert {p.name for p in removed} == {"acme:tools:lint", "acme:tools:review"}
        assert manager.linked_names() == ["mine"]

    def test_unlink_under_missing_dir(self, tmp_path: Path, manager: LinkManager) -> None:
        """Test a missing activation directory is not an error."""
        assert manager.unlink_under(tmp_path / "cache") == []

    def test_reconcile_removed_skill(self, tmp_path: Path, manager: LinkManager) -> None:
        """Test a linked skill that disappeared is unlinked."""
        skill = _make_skill(tmp_path)
        manager.link(skill)
        before = Skill.create(REF, "lint", skill.source_dir, is_linked=True)

        manager.reconcile([before], [])
        assert manager.linked_names() == []

    def test_reconcile_moved_skill(self, tmp_path: Path, manager: LinkManager) -> None:
        """Test a linked skill that moved is re-pointed."""
        old = _make_skill(tmp_path, "lint", subdir="old/lint")
        manager.link(old)
        new = _make_skill(tmp_path, "lint", subdir="new/lint")

        linked_old = Skill.create(REF, "lint", old.source_dir, is_linked=True)
        manager.reconcile([linked_old], [new])

        assert manager.is_linked(new)
        assert not manager.is_linked(old)

    def test_reconcile_leaves_unlinked_and_foreign(
        self, tmp_path: Path, manager: LinkManager
    ) -> None:
        """Test unlinked skills and foreign links are left untouched."""
        skill = _make_skill(tmp_path)
        other = tmp_path / "other"
        other.mkdir()
        (tmp_path / "skills").mkdir()
        link = tmp_path / "skills" / "acme:tools:lint"
        link.symlink_to(other)

        stale = Skill.create(REF, "lint", skill.source_dir, is_linked=True)
        manager.reconcile([stale], [])
        assert link.is_symlink()
        assert os.readlink(link) == str(other)
