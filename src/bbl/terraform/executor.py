"""
Terraform executor.

Runs the terraform binary against a template and a serialized state in a
throwaway working directory. The state is opaque to bbl: it goes in as a
string and comes back out as a string.
"""

from __future__ import annotations

import json
import logging
import re
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Any

from bbl.core.errors import BblError

from .errors import ExecutorError

logger = logging.getLogger(__name__)

TEMPLATE_FILE = "template.tf"
STATE_FILE = "terraform.tfstate"

_VERSION_RE = re.compile(r"Terraform v(\d+\.\d+\.\d+)")


class Executor:
    """
    Wraps the terraform CLI.

    Usage:
        executor = Executor("terraform")
        tf_state = executor.apply({"region": "us-east-1"}, template, "")
        ip = executor.output(tf_state, "external_ip")
    """

    def __init__(self, binary: str = "terraform", debug: bool = False):
        self.binary = binary
        self.debug = debug

    def version(self) -> str:
        """Get the installed terraform version, e.g. "0.9.1"."""
        result = self._run([self.binary, "version"], cwd=None)
        if result.returncode != 0:
            raise BblError(f"failed to get terraform version: {result.stderr.strip()}")

        match = _VERSION_RE.search(result.stdout)
        if not match:
            raise BblError("terraform version could not be parsed")
        return match.group(1)

    def apply(self, inputs: dict[str, str], template: str, tf_state: str) -> str:
        """
        Apply a template.

        Args:
            inputs: Terraform input variables
            template: HCL template
            tf_state: Current serialized state, "" if never applied

        Returns:
            The new serialized state

        Raises:
            ExecutorError: If terraform fails; carries the partial state
        """
        work_dir = self._prepare(template, tf_state)
        state_path = work_dir / STATE_FILE

        self._run_or_raise([self.binary, "init", "-input=false"], work_dir, state_path)

        args = [self.binary, "apply", "-input=false", "-auto-approve", f"-state={STATE_FILE}"]
        for name, value in inputs.items():
            args.extend(["-var", f"{name}={value}"])

        self._run_or_raise(args, work_dir, state_path)

        new_state = state_path.read_text(encoding="utf-8")
        shutil.rmtree(work_dir, ignore_errors=True)
        return new_state

    def destroy(self, inputs: dict[str, str], template: str, tf_state: str) -> str:
        """
        Destroy everything a serialized state tracks.

        Returns:
            The serialized state left after the destroy

        Raises:
            ExecutorError: If terraform fails; carries the partial state
        """
        work_dir = self._prepare(template, tf_state)
        state_path = work_dir / STATE_FILE

        self._run_or_raise([self.binary, "init", "-input=false"], work_dir, state_path)

        args = [self.binary, "destroy", "-input=false", "-auto-approve", f"-state={STATE_FILE}"]
        for name, value in inputs.items():
            args.extend(["-var", f"{name}={value}"])

        self._run_or_raise(args, work_dir, state_path)

        new_state = state_path.read_text(encoding="utf-8")
        shutil.rmtree(work_dir, ignore_errors=True)
        return new_state

    def outputs(self, tf_state: str) -> dict[str, Any]:
        """Read every output of a serialized state as a name to value map."""
        with tempfile.TemporaryDirectory(prefix="bbl-terraform-") as tmp:
            work_dir = Path(tmp)
            (work_dir / STATE_FILE).write_text(tf_state, encoding="utf-8")

            result = self._run(
                [self.binary, "output", "-json", f"-state={STATE_FILE}"],
                cwd=work_dir,
            )

        if result.returncode != 0:
            raise BblError(f"failed to get terraform outputs: {result.stderr.strip()}")

        raw = json.loads(result.stdout or "{}")
        return {name: entry.get("value") for name, entry in raw.items()}

    def output(self, tf_state: str, output_name: str) -> str:
        """
        Read one output from a serialized state.

        List outputs are joined with ",\\n".
        """
        with tempfile.TemporaryDirectory(prefix="bbl-terraform-") as tmp:
            work_dir = Path(tmp)
            (work_dir / STATE_FILE).write_text(tf_state, encoding="utf-8")

            result = self._run(
                [self.binary, "output", "-json", f"-state={STATE_FILE}", output_name],
                cwd=work_dir,
            )

        if result.returncode != 0:
            raise BblError(
                f"failed to get terraform output {output_name!r}: {result.stderr.strip()}"
            )

        value: Any = json.loads(result.stdout)
        if isinstance(value, list):
            return ",\n".join(str(v) for v in value)
        return str(value)

    def _prepare(self, template: str, tf_state: str) -> Path:
        work_dir = Path(tempfile.mkdtemp(prefix="bbl-terraform-"))
        (work_dir / TEMPLATE_FILE).write_text(template, encoding="utf-8")
        if tf_state:
            (work_dir / STATE_FILE).write_text(tf_state, encoding="utf-8")
        return work_dir

    def _run(self, args: list[str], cwd: Path | None) -> subprocess.CompletedProcess[str]:
        logger.debug("Running %s", " ".join(args[:2]))
        result = subprocess.run(args, cwd=cwd, capture_output=True, text=True)
        if self.debug and result.stdout:
            logger.debug(result.stdout)
        return result

    def _run_or_raise(self, args: list[str], cwd: Path, state_path: Path) -> None:
        result = self._run(args, cwd)
        if result.returncode != 0:
            message = result.stderr.strip() or f"{' '.join(args[:2])} exited {result.returncode}"
            raise ExecutorError(state_path, message)
