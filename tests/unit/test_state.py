"""Tests for bbl state and the state store."""

from __future__ import annotations

import json
import os
import stat
from pathlib import Path
from unittest.mock import patch

import pytest

from bbl.core.errors import StateError
from bbl.core.state import LB, State, StateStore


class TestState:
    """Tests for State properties."""

    def test_empty_state(self):
        state = State()

        assert not state.uses_terraform
        assert state.lb_type == ""
        assert not state.has_lb

    def test_legacy_lb_type(self, legacy_state):
        legacy_state.stack.lb_type = "cf"
        legacy_state.lb = LB(type="concourse")

        assert legacy_state.lb_type == "cf"
        assert legacy_state.has_lb

    def test_terraform_lb_type(self, terraform_state):
        terraform_state.stack.lb_type = "cf"
        terraform_state.lb = LB(type="concourse")

        assert terraform_state.lb_type == "concourse"

    def test_none_is_no_lb(self, legacy_state):
        legacy_state.stack.lb_type = "none"

        assert not legacy_state.has_lb

    def test_copy_is_deep(self, legacy_state):
        copy = legacy_state.copy_state()
        copy.stack.lb_type = "cf"

        assert legacy_state.stack.lb_type == ""

    def test_json_uses_aliases(self, terraform_state):
        data = json.loads(terraform_state.model_dump_json(by_alias=True))

        assert data["envID"] == "some-env-id"
        assert data["tfState"] == "some-tf-state"
        assert data["aws"]["accessKeyId"] == "some-access-key"


class TestStateStore:
    """Tests for StateStore."""

    def test_missing_file_is_empty_state(self, tmp_path: Path):
        assert StateStore(tmp_path).get() == State()

    def test_round_trip(self, tmp_path: Path, legacy_state):
        store = StateStore(tmp_path)

        store.set(legacy_state)

        assert store.get() == legacy_state
        assert stat.S_IMODE(os.stat(store.path).st_mode) == 0o600

    def test_reads_existing_json(self, tmp_path: Path):
        (tmp_path / "bbl-state.json").write_text(
            json.dumps({"version": 3, "envID": "lake", "stack": {"lbType": "concourse"}})
        )

        state = StateStore(tmp_path).get()

        assert state.env_id == "lake"
        assert state.stack.lb_type == "concourse"

    def test_corrupt_file(self, tmp_path: Path):
        (tmp_path / "bbl-state.json").write_text("{not json")

        with pytest.raises(StateError, match="Failed to load bbl state"):
            StateStore(tmp_path).get()

    def test_failed_write_keeps_previous_state(self, tmp_path: Path, legacy_state):
        """Test a failed write leaves the old file and no temp files."""
        store = StateStore(tmp_path)
        store.set(legacy_state)
        changed = legacy_state.copy_state()
        changed.env_id = "changed"

        with patch("bbl.core.state.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(StateError, match="Failed to save bbl state"):
                store.set(changed)

        assert store.get().env_id == "some-env-id"
        assert [p.name for p in tmp_path.iterdir()] == ["bbl-state.json"]

    def test_creates_state_dir(self, tmp_path: Path, legacy_state):
        store = StateStore(tmp_path / "nested" / "env")

        store.set(legacy_state)

        assert store.path.exists()
