"""Tests for the Terraform manager and its errors."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from bbl.core.errors import BblError
from bbl.core.state import LB
from bbl.terraform.errors import ExecutorError, ManagerError
from bbl.terraform.manager import Manager


@pytest.fixture
def executor():
    executor = MagicMock()
    executor.apply.return_value = "some-new-tf-state"
    return executor


@pytest.fixture
def lb_state(terraform_state):
    terraform_state.lb = LB(type="concourse", cert="some-cert", key="some-key")
    return terraform_state


class TestManagerApply:
    """Tests for Manager.apply."""

    def test_returns_state_with_new_tf_state(self, executor, lb_state):
        """Test the applied tf_state is folded into a copy of the state."""
        result = Manager(executor).apply(lb_state)

        assert result.tf_state == "some-new-tf-state"
        assert result.lb == lb_state.lb
        assert lb_state.tf_state == "some-tf-state"

    def test_passes_template_inputs_and_state(self, executor, lb_state):
        """Test the executor gets generated template and inputs."""
        template_generator = MagicMock()
        template_generator.generate.return_value = "some-template"
        input_generator = MagicMock()
        input_generator.generate.return_value = {"env_id": "some-env-id"}

        Manager(executor, template_generator, input_generator).apply(lb_state)

        template_generator.generate.assert_called_once_with(lb_state)
        input_generator.generate.assert_called_once_with(lb_state)
        executor.apply.assert_called_once_with(
            {"env_id": "some-env-id"}, "some-template", "some-tf-state"
        )

    def test_executor_error_is_recoverable(self, executor, lb_state, tmp_path: Path):
        """Test an executor failure becomes a ManagerError."""
        error = ExecutorError(tmp_path / "terraform.tfstate", "apply failed")
        executor.apply.side_effect = error

        with pytest.raises(ManagerError) as exc_info:
            Manager(executor).apply(lb_state)

        assert str(exc_info.value) == "apply failed"
        assert exc_info.value.executor_error is error

    def test_other_errors_propagate(self, executor, lb_state):
        """Test unexpected failures are not wrapped."""
        executor.apply.side_effect = OSError("disk full")

        with pytest.raises(OSError, match="disk full"):
            Manager(executor).apply(lb_state)

    def test_logs_steps(self, executor, lb_state, caplog):
        with caplog.at_level("INFO"):
            Manager(executor).apply(lb_state)

        assert caplog.messages[:2] == ["generating terraform template", "applying terraform template"]


class TestManagerError:
    """Tests for ManagerError.bbl_state."""

    def test_bbl_state_carries_partial_tf_state(self, lb_state, tmp_path: Path):
        """Test the partial state replaces tf_state and the work dir is removed."""
        work_dir = tmp_path / "work"
        work_dir.mkdir()
        state_path = work_dir / "terraform.tfstate"
        state_path.write_text("some-partial-tf-state")

        error = ManagerError(lb_state, ExecutorError(state_path, "apply failed"))
        partial = error.bbl_state()

        assert partial.tf_state == "some-partial-tf-state"
        assert partial.lb == lb_state.lb
        assert not work_dir.exists()
        assert error.bbl_state().tf_state == "some-partial-tf-state"

    def test_bbl_state_unreadable(self, lb_state, tmp_path: Path):
        """Test a missing partial state raises."""
        error = ManagerError(lb_state, ExecutorError(tmp_path / "nope" / "terraform.tfstate", "x"))

        with pytest.raises(BblError, match="failed to read terraform state"):
            error.bbl_state()


class TestManagerDestroy:
    """Tests for Manager.destroy."""

    def test_returns_state_with_destroyed_tf_state(self, executor, lb_state):
        executor.destroy.return_value = "some-empty-tf-state"

        result = Manager(executor).destroy(lb_state)

        assert result.tf_state == "some-empty-tf-state"
        assert lb_state.tf_state == "some-tf-state"
        inputs, template, tf_state = executor.destroy.call_args.args
        assert tf_state == "some-tf-state"
        assert inputs["env_id"] == "some-env-id"

    def test_nothing_to_destroy(self, executor, lb_state):
        lb_state.tf_state = ""

        result = Manager(executor).destroy(lb_state)

        assert result.tf_state == ""
        executor.destroy.assert_not_called()

    def test_executor_error_is_recoverable(self, executor, lb_state, tmp_path: Path):
        error = ExecutorError(tmp_path / "terraform.tfstate", "destroy failed")
        executor.destroy.side_effect = error

        with pytest.raises(ManagerError) as exc_info:
            Manager(executor).destroy(lb_state)

        assert exc_info.value.executor_error is error
