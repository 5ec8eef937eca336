"""Tests for status line notifications."""

from __future__ import annotations

from silk.status import STATUS_DISPLAY_DURATION, StatusKind, StatusManager


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TestStatusManager:
    """Tests for StatusManager entries and display."""

    def test_empty_shows_ready(self) -> None:
        """Test an empty manager displays Ready."""
        status = StatusManager()
        assert status.display() == "Ready"
        assert status.is_empty()
        assert status.display_kind() is StatusKind.SUCCESS

    def test_single_entry(self) -> None:
        """Test one entry is shown verbatim."""
        status = StatusManager()
        status.add("install:acme/tools", "Installing acme/tools...", StatusKind.PROGRESS)
        assert status.display() == "Installing acme/tools..."
        assert len(status) == 1

    def test_multiple_progress_entries(self) -> None:
        """Test entries of one kind keep insertion order."""
        status = StatusManager()
        status.add("install:foo", "Installing foo...", StatusKind.PROGRESS)
        status.add("install:bar", "Installing bar...", StatusKind.PROGRESS)
        assert status.display() == "Installing foo... | Installing bar..."

    def test_update_existing_entry(self) -> None:
        """Test adding with an existing id replaces the entry."""
        status = StatusManager()
        status.add("install:foo", "Installing foo...", StatusKind.PROGRESS)
        status.add("install:foo", "Installed: foo", StatusKind.SUCCESS)
        assert status.display() == "Installed: foo"
        assert len(status) == 1

    def test_remove(self) -> None:
        """Test remove drops only the named entry."""
        status = StatusManager()
        status.add("install:foo", "Installing foo...", StatusKind.PROGRESS)
        status.add("install:bar", "Installing bar...", StatusKind.PROGRESS)
        status.remove("install:foo")
        status.remove("install:missing")
        assert status.display() == "Installing bar..."

    def test_clear_completed(self) -> None:
        """Test clear_completed keeps only progress entries."""
        status = StatusManager()
        status.add("install:foo", "Installing foo...", StatusKind.PROGRESS)
        status.add("done:bar", "Installed bar", StatusKind.SUCCESS)
        status.add("error:baz", "Failed baz", StatusKind.ERROR)
        status.clear_completed()
        assert status.display() == "Installing foo..."

    def test_priority_order(self) -> None:
        """Test display orders Progress, Error, Success, Info."""
        status = StatusManager()
        status.add("info:1", "Info message", StatusKind.INFO)
        status.add("success:1", "Success message", StatusKind.SUCCESS)
        status.add("progress:1", "Progress message", StatusKind.PROGRESS)
        status.add("error:1", "Error message", StatusKind.ERROR)

        assert status.display() == (
            "Progress message | Error message | Success message | Info message"
        )

    def test_display_kind_priority(self) -> None:
        """Test the most relevant kind wins."""
        status = StatusManager()
        status.add("info:1", "Info", StatusKind.INFO)
        assert status.display_kind() is StatusKind.INFO
        status.add("success:1", "Success", StatusKind.SUCCESS)
        assert status.display_kind() is StatusKind.SUCCESS
        status.add("error:1", "Error", StatusKind.ERROR)
        assert status.display_kind() is StatusKind.ERROR
        assert status.has_error()
        status.add("progress:1", "Progress", StatusKind.PROGRESS)
        assert status.display_kind() is StatusKind.PROGRESS
        assert status.has_progress()


class TestStatusExpiry:
    """Tests for StatusManager.clear_expired()."""

    def test_recent_entries_kept(self) -> None:
        """Test entries younger than the display duration survive."""
        clock = FakeClock()
        status = StatusManager(clock=clock)
        status.add("progress:1", "Installing...", StatusKind.PROGRESS)
        status.add("success:1", "Done", StatusKind.SUCCESS)

        clock.advance(STATUS_DISPLAY_DURATION - 0.1)
        status.clear_expired()
        assert status.display() == "Installing... | Done"

    def test_old_entries_expire_except_progress(self) -> None:
        """Test expired non-progress entries are removed, progress stays."""
        clock = FakeClock()
        status = StatusManager(clock=clock)
        status.add("progress:1", "Installing...", StatusKind.PROGRESS)
        status.add("success:1", "Done", StatusKind.SUCCESS)
        status.add("error:1", "Failed", StatusKind.ERROR)

        clock.advance(STATUS_DISPLAY_DURATION)
        status.clear_expired()
        assert status.display() == "Installing..."

    def test_update_restarts_expiry(self) -> None:
        """Test re-adding an entry resets its age."""
        clock = FakeClock()
        status = StatusManager(clock=clock)
        status.add("update:foo", "Updating foo...", StatusKind.PROGRESS)
        clock.advance(10)
        status.add("update:foo", "Updated: foo", StatusKind.SUCCESS)

        clock.advance(1)
        status.clear_expired()
        assert status.display() == "Updated: foo"

        clock.advance(STATUS_DISPLAY_DURATION)
        status.clear_expired()
        assert status.display() == "Ready"
