"""
update-lbs: replace the certificate of an attached load balancer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from bbl.core.errors import ValidationError

from .config import NO_LB_FOUND, CreateLBsConfig

if TYPE_CHECKING:
    from bbl.core.state import State

    from .config import UpdateLBsConfig
    from .create import CreateLBs


class UpdateLBs:
    """Re-runs create-lbs for the LB type already attached."""

    def __init__(self, create_lbs: CreateLBs):
        self.create_lbs = create_lbs

    def execute(self, config: UpdateLBsConfig, state: State) -> State:
        if not state.has_lb:
            raise ValidationError(NO_LB_FOUND)

        create_config = CreateLBsConfig(
            lb_type=state.lb_type,
            cert_path=config.cert_path,
            key_path=config.key_path,
            chain_path=config.chain_path,
            domain=config.domain,
        )
        return self.create_lbs.execute(create_config, state)
