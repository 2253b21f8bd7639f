"""Tests for run-once history."""

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from outset.items.history import RunHistory
from outset.storage import StoreError

ITEM = Path("/usr/local/outset/login-once/setup.sh")
T0 = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


class TestRecordRun:
    """Tests for has_run and record_run."""

    def test_empty_history(self, history):
        """Nothing has run in a fresh history."""
        assert not history.has_run("alice", ITEM)
        assert history.last_run("alice", ITEM) is None

    def test_record_and_lookup(self, history):
        """A recorded run is found again."""
        history.record_run("alice", ITEM, T0)

        assert history.has_run("alice", ITEM)
        assert history.last_run("alice", ITEM) == T0

    def test_persists_across_instances(self, history):
        """History is read back from disk by a new instance."""
        history.record_run("alice", ITEM, T0)

        reloaded = RunHistory(history.path)
        assert reloaded.has_run("alice", ITEM)

    def test_file_format(self, history):
        """Runs are stored as ISO 8601 strings under the run_once key."""
        history.record_run("alice", ITEM, T0)

        data = json.loads(history.path.read_text())
        assert data == {"run_once": {str(ITEM): "2025-03-01T12:00:00+00:00"}}

    def test_corrupted_file_raises(self, history):
        """Corrupted history is an unrecoverable store error."""
        history.path.parent.mkdir(parents=True)
        history.path.write_text("not valid json {{{")

        with pytest.raises(StoreError):
            history.has_run("alice", ITEM)

    @pytest.mark.parametrize("content", ['["x"]', '{"run_once": ["x"]}', '{"run_once": "x"}'])
    def test_wrong_shape_raises(self, history, content):
        """Valid JSON with the wrong structure is a store error too."""
        history.path.parent.mkdir(parents=True)
        history.path.write_text(content)

        with pytest.raises(StoreError):
            history.has_run("alice", ITEM)
        with pytest.raises(StoreError):
            history.record_run("alice", ITEM, T0)


class TestScoping:
    """Tests for per-user history keys."""

    def test_standard_process_uses_single_key(self, tmp_path):
        """A standard process keeps one history regardless of name."""
        history = RunHistory(tmp_path / "h.json", elevated=False)
        history.record_run("alice", ITEM, T0)

        assert history.key_for("alice") == "run_once"
        assert history.has_run("bob", ITEM)

    def test_elevated_history_is_per_user(self, tmp_path):
        """An elevated process keys history by console user."""
        history = RunHistory(tmp_path / "h.json", elevated=True)
        history.record_run("alice", ITEM, T0)

        assert history.key_for("alice") == "run_once-alice"
        assert history.has_run("alice", ITEM)
        assert not history.has_run("bob", ITEM)
        assert not history.has_run("root", ITEM)


class TestEligibility:
    """Tests for override-aware eligibility."""

    def test_never_run_is_eligible(self, history):
        assert history.is_eligible("alice", ITEM)

    def test_already_run_is_not_eligible(self, history):
        history.record_run("alice", ITEM, T0)
        assert not history.is_eligible("alice", ITEM)

    def test_newer_override_makes_eligible(self, history):
        """An override later than the last run re-enables the item."""
        history.record_run("alice", ITEM, T0)
        overrides = {str(ITEM): T0 + timedelta(hours=1)}

        assert history.is_eligible("alice", ITEM, overrides)

    def test_older_override_is_ignored(self, history):
        """An override older than the last run has already been used."""
        history.record_run("alice", ITEM, T0)
        overrides = {str(ITEM): T0 - timedelta(hours=1)}

        assert not history.is_eligible("alice", ITEM, overrides)

    def test_equal_override_is_ignored(self, history):
        """The override must be strictly newer."""
        history.record_run("alice", ITEM, T0)

        assert not history.is_eligible("alice", ITEM, {str(ITEM): T0})
