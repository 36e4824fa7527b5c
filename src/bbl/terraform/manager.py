"""
Terraform manager.

Turns an environment state into a Terraform run and folds the resulting
``tf_state`` back into the state.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .errors import ExecutorError, ManagerError
from .executor import Executor
from .templates import InputGenerator, TemplateGenerator

if TYPE_CHECKING:
    from bbl.core.state import State

logger = logging.getLogger(__name__)


class Manager:
    """Applies and destroys a state's infrastructure with Terraform."""

    def __init__(
        self,
        executor: Executor,
        template_generator: TemplateGenerator | None = None,
        input_generator: InputGenerator | None = None,
    ):
        self.executor = executor
        self.template_generator = template_generator or TemplateGenerator()
        self.input_generator = input_generator or InputGenerator()

    def apply(self, state: State) -> State:
        """
        Apply the template for a state.

        Args:
            state: State to apply; not modified

        Returns:
            A copy of the state carrying the new tf_state

        Raises:
            ManagerError: If terraform failed after possibly changing
                infrastructure; ``bbl_state()`` returns the partial state
        """
        logger.info("generating terraform template")
        template = self.template_generator.generate(state)
        inputs = self.input_generator.generate(state)

        logger.info("applying terraform template")
        try:
            tf_state = self.executor.apply(inputs, template, state.tf_state)
        except ExecutorError as e:
            raise ManagerError(state, e) from e

        new_state = state.copy_state()
        new_state.tf_state = tf_state
        return new_state

    def destroy(self, state: State) -> State:
        """
        Destroy the infrastructure tracked by a state's tf_state.

        Raises:
            ManagerError: If terraform failed part way; ``bbl_state()``
                returns the partial state
        """
        if not state.tf_state:
            return state.copy_state()

        template = self.template_generator.generate(state)
        inputs = self.input_generator.generate(state)

        logger.info("destroying infrastructure")
        try:
            tf_state = self.executor.destroy(inputs, template, state.tf_state)
        except ExecutorError as e:
            raise ManagerError(state, e) from e

        new_state = state.copy_state()
        new_state.tf_state = tf_state
        return new_state

    def version(self) -> str:
        return self.executor.version()
