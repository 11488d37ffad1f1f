"""
Pipeline orchestration for CMD AI.

collect context -> build prompt -> generate -> record history, with one
run in flight at a time.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

from .context import ContextCollector
from .errors import BusyError, CmdAIError, EmptyGenerationError, ModelError, ValidationError
from .history import HistoryStore
from .llm.generator import CommandGenerator
from .prompts import build_prompt

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class Outcome:
    """Result of one run that got past validation."""

    state: PipelineState
    request: str
    command: Optional[str] = None
    history: List[str] = field(default_factory=list)
    error: Optional[CmdAIError] = None

    @property
    def ok(self) -> bool:
        return self.state is PipelineState.SUCCESS


class Pipeline:
    """
    Runs one request through the pipeline.

    run() raises ValidationError or BusyError before anything starts and
    the state is left alone. Once loading, the run always ends in SUCCESS
    or ERROR and the Outcome is returned; the history is written only on
    SUCCESS.
    """

    def __init__(
        self,
        collector: ContextCollector,
        generator: CommandGenerator,
        history: HistoryStore,
        on_state_change: Optional[Callable[[PipelineState], None]] = None,
    ):
        self.collector = collector
        self.generator = generator
        self.history = history
        self.on_state_change = on_state_change
        self.state = PipelineState.IDLE

    def _set_state(self, state: PipelineState) -> None:
        self.state = state
        logger.debug(f"Pipeline state: {state.value}")
        if self.on_state_change:
            try:
                self.on_state_change(state)
            except Exception as e:
                logger.error(f"State listener error: {e}")

    async def run(self, request: str) -> Outcome:
        if self.state is PipelineState.LOADING:
            raise BusyError()
        if not request or not request.strip():
            raise ValidationError("Please enter a description")

        # SUCCESS/ERROR from the previous run go back to IDLE first
        if self.state is not PipelineState.IDLE:
            self._set_state(PipelineState.IDLE)
        self._set_state(PipelineState.LOADING)

        try:
            context = await self.collector.collect()
            prompt = build_prompt(request, context)
            command = await self.generator.generate(prompt)
            if command is None:
                raise EmptyGenerationError()
            updated = self._record(request)
        except (ModelError, EmptyGenerationError) as e:
            logger.debug(f"Generation failed: {e}")
            self._set_state(PipelineState.ERROR)
            return Outcome(PipelineState.ERROR, request, error=e)
        except BaseException:
            # Unexpected failure or cancellation: don't stay stuck in LOADING
            self._set_state(PipelineState.ERROR)
            raise

        self._set_state(PipelineState.SUCCESS)
        logger.info(f"Generated command for request ({len(command)} chars)")
        return Outcome(PipelineState.SUCCESS, request, command=command, history=updated)

    def _record(self, request: str) -> List[str]:
        # The command already exists; a storage failure must not lose it
        try:
            return self.history.record(request)
        except Exception as e:
            logger.warning(f"Failed to save history: {e}")
            return self.history.list()

    async def reuse(self, index: int) -> Outcome:
        """Run a past request again."""
        return await self.run(self.history.get(index))

    def edit(self, index: int) -> str:
        """Past request text, for the caller to edit before running."""
        return self.history.get(index)

    def clear_history(self) -> None:
        self.history.clear()
