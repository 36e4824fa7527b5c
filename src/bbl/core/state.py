"""
Environment state for bbl.

The state is the aggregate root of a bbl environment. It is loaded once per
command from ``bbl-state.json`` in the state directory, changed in memory,
and written back atomically.

Two backends can own the load balancer:
- legacy (CloudFormation): ``stack`` carries the LB type and certificate name
- declarative (Terraform): ``lb`` carries the LB type and raw certificate
  content, ``tf_state`` carries the opaque Terraform state
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from .errors import StateError

logger = logging.getLogger(__name__)

STATE_FILE = "bbl-state.json"
STATE_VERSION = 3

# LB types that mean "nothing attached"
NO_LB_TYPES = frozenset({"", "none"})


class _StateModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# =============================================================================
# State Sections
# =============================================================================


class AWS(_StateModel):
    """AWS credentials and region."""

    access_key_id: str = Field(default="", alias="accessKeyId")
    secret_access_key: str = Field(default="", alias="secretAccessKey")
    region: str = ""


class KeyPair(_StateModel):
    """EC2 key pair used by the BOSH director."""

    name: str = ""
    private_key: str = Field(default="", alias="privateKey")


class BOSH(_StateModel):
    """BOSH director connection details."""

    director_name: str = Field(default="", alias="directorName")
    director_address: str = Field(default="", alias="directorAddress")
    director_username: str = Field(default="", alias="directorUsername")
    director_password: str = Field(default="", alias="directorPassword")
    director_ssl_ca: str = Field(default="", alias="directorSSLCA")


class Stack(_StateModel):
    """CloudFormation stack owned by the legacy backend."""

    name: str = ""
    lb_type: str = Field(default="", alias="lbType")
    certificate_name: str = Field(default="", alias="certificateName")
    bosh_az: str = Field(default="", alias="boshAZ")


class LB(_StateModel):
    """Load balancer configuration owned by the Terraform backend."""

    type: str = ""
    cert: str = ""
    key: str = ""
    chain: str = ""
    domain: str = ""


class State(_StateModel):
    """Complete bbl environment state."""

    version: int = STATE_VERSION
    env_id: str = Field(default="", alias="envID")
    aws: AWS = Field(default_factory=AWS)
    key_pair: KeyPair = Field(default_factory=KeyPair, alias="keyPair")
    bosh: BOSH = Field(default_factory=BOSH)
    stack: Stack = Field(default_factory=Stack)
    tf_state: str = Field(default="", alias="tfState")
    lb: LB = Field(default_factory=LB)
    no_director: bool = Field(default=False, alias="noDirector")

    @property
    def uses_terraform(self) -> bool:
        """True when the environment has been applied with Terraform."""
        return self.tf_state != ""

    @property
    def lb_type(self) -> str:
        """LB type recorded by whichever backend owns the environment."""
        if self.uses_terraform:
            return self.lb.type
        return self.stack.lb_type

    @property
    def has_lb(self) -> bool:
        """Check if a load balancer is attached."""
        return self.lb_type not in NO_LB_TYPES

    def copy_state(self) -> State:
        """Deep copy, so callers never see in-flight changes."""
        return self.model_copy(deep=True)


# =============================================================================
# State Store
# =============================================================================


class StateStore:
    """
    Reads and writes ``bbl-state.json`` in a state directory.

    Writes go to a temporary file in the same directory which then replaces
    the state file, so a reader never sees a half-written state.
    """

    def __init__(self, state_dir: Path):
        self.state_dir = state_dir

    @property
    def path(self) -> Path:
        return self.state_dir / STATE_FILE

    def get(self) -> State:
        """
        Load the current state.

        Returns:
            State from disk, or an empty State if no state file exists

        Raises:
            StateError: If the state file cannot be read or parsed
        """
        if not self.path.exists():
            return State()

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return State.model_validate(data)
        except Exception as e:
            raise StateError(f"Failed to load bbl state: {e}") from e

    def set(self, state: State) -> None:
        """
        Persist state atomically.

        Raises:
            StateError: If the state cannot be written
        """
        content = state.model_dump_json(by_alias=True, indent=2)

        try:
            self.state_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.state_dir, prefix=".bbl-state-", suffix=".json"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(content)
                    f.flush()
                    os.fsync(f.fileno())
                os.chmod(tmp_name, 0o600)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StateError(f"Failed to save bbl state: {e}") from e

        logger.debug("Saved state to %s", self.path)
