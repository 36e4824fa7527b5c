"""
Terraform error types.

``ManagerError`` is the recoverable failure: Terraform changed real
infrastructure before failing, and the error can hand back a state carrying
the partial ``tf_state`` so it can be saved. Any other exception raised by an
apply is unrecoverable.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import TYPE_CHECKING

from bbl.core.errors import BblError

if TYPE_CHECKING:
    from bbl.core.state import State


class ExecutorError(BblError):
    """
    Raised when the terraform binary fails.

    Keeps the path of the working directory's state file so the state
    Terraform left behind can still be read.
    """

    def __init__(self, tf_state_path: Path, message: str):
        self.tf_state_path = tf_state_path
        self._tf_state: str | None = None
        super().__init__(message)

    def tf_state(self) -> str:
        """
        Read the Terraform state left behind by the failed run.

        Raises:
            BblError: If the state file cannot be read
        """
        if self._tf_state is None:
            try:
                self._tf_state = self.tf_state_path.read_text(encoding="utf-8")
            except OSError as e:
                raise BblError(f"failed to read terraform state: {e}") from e
            shutil.rmtree(self.tf_state_path.parent, ignore_errors=True)
        return self._tf_state


class ManagerError(BblError):
    """Recoverable Terraform apply failure."""

    def __init__(self, bbl_state: State, executor_error: ExecutorError):
        self._bbl_state = bbl_state
        self.executor_error = executor_error
        super().__init__(str(executor_error))

    def bbl_state(self) -> State:
        """
        Return the state as of the failure, with the partial tf_state.

        Raises:
            BblError: If the partial tf_state cannot be read
        """
        state = self._bbl_state.copy_state()
        state.tf_state = self.executor_error.tf_state()
        return state
