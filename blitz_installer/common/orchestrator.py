# blitz_installer/common/orchestrator.py
# -*- coding: utf-8 -*-
"""
Sequential stage orchestrator.

Stages run strictly in pipeline order, each at most once. Every outcome is
recorded as a StageResult. The orchestrator also acts as the fault handler:
an exception a stage did not anticipate is wrapped into
UnexpectedCommandFailure and reported with the stage it came from. The
first failure of a fatal stage halts the run; nothing already done is
undone.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from blitz_installer.errors import ProvisioningError, UnexpectedCommandFailure


class PipelineState(str, Enum):
    START = "START"
    PRECONDITIONS = "PRECONDITIONS"
    LOG_CLEANUP = "LOG_CLEANUP"
    SYSTEM_DEPS = "SYSTEM_DEPS"
    DB_ENGINE = "DB_ENGINE"
    ARTIFACT_FETCH = "ARTIFACT_FETCH"
    RUNTIME_ENV = "RUNTIME_ENV"
    ALIAS = "ALIAS"
    LAUNCH = "LAUNCH"
    COMPLETE = "COMPLETE"
    FAILED = "FAILED"


STAGE_ORDER: List[PipelineState] = [
    PipelineState.PRECONDITIONS,
    PipelineState.LOG_CLEANUP,
    PipelineState.SYSTEM_DEPS,
    PipelineState.DB_ENGINE,
    PipelineState.ARTIFACT_FETCH,
    PipelineState.RUNTIME_ENV,
    PipelineState.ALIAS,
    PipelineState.LAUNCH,
]


@dataclass
class StageResult:
    """Outcome of one stage."""

    stage: PipelineState
    succeeded: bool
    fatal: bool = True
    error: Optional[ProvisioningError] = None
    value: Any = None

    @property
    def kind(self) -> str:
        return self.error.kind if self.error else "success"


class Orchestrator:
    """Runs registered stages in order and halts on the first fatal failure."""

    def __init__(
        self,
        app_settings: Any,
        orchestrator_logger: Optional[logging.Logger] = None,
    ):
        """
        Initializes the Orchestrator.

        Args:
            app_settings: The application settings object, passed to every stage.
            orchestrator_logger: An optional logger instance.
        """
        self.app_settings = app_settings
        self.logger = orchestrator_logger or logging.getLogger(__name__)
        self.tasks: List[Dict[str, Any]] = []
        self.results: List[StageResult] = []
        # Shared context for stages to pass facts (host profile, install target) forward
        self.context: Dict[str, Any] = {}
        self.state: PipelineState = PipelineState.START

    def add_task(
        self,
        stage: PipelineState,
        func: Callable,
        args: Optional[List[Any]] = None,
        kwargs: Optional[Dict[str, Any]] = None,
        fatal: bool = True,
    ) -> None:
        """
        Registers the function run for a stage.

        Args:
            stage: The pipeline stage. Stages must be added in pipeline order
                and each at most once.
            func: Called as func(*args, app_settings=..., context=..., **kwargs).
            args: Positional arguments for the function.
            kwargs: Keyword arguments for the function.
            fatal: If True, a failure in this stage halts the run.

        Raises:
            ValueError: The stage is unknown or out of order.
        """
        if stage not in STAGE_ORDER:
            raise ValueError(f"'{stage.value}' is not a runnable stage")
        if self.tasks:
            last = self.tasks[-1]["stage"]
            if STAGE_ORDER.index(stage) <= STAGE_ORDER.index(last):
                raise ValueError(
                    f"Stage '{stage.value}' cannot follow '{last.value}'"
                )
        self.tasks.append({
            "stage": stage,
            "func": func,
            "args": args or [],
            "kwargs": kwargs or {},
            "fatal": fatal,
        })
        self.logger.debug(
            f"Stage '{stage.value}' added to the queue.", extra={"stage": stage.value}
        )

    @property
    def failure(self) -> Optional[StageResult]:
        """The fatal failure that halted the run, if any."""
        for result in self.results:
            if not result.succeeded and result.fatal:
                return result
        return None

    @property
    def exit_code(self) -> int:
        failure = self.failure
        if failure is None or failure.error is None:
            return 0
        return failure.error.exit_code

    def _run_stage(self, task: Dict[str, Any]) -> StageResult:
        stage: PipelineState = task["stage"]
        kwargs = dict(task["kwargs"])
        kwargs["app_settings"] = self.app_settings
        kwargs["context"] = self.context
        try:
            value = task["func"](*task["args"], **kwargs)
        except ProvisioningError as e:
            if e.stage is None:
                e.stage = stage.value
            return StageResult(stage, False, task["fatal"], error=e)
        except Exception as e:
            self.logger.debug(
                f"Unhandled exception in stage '{stage.value}'",
                exc_info=True,
                extra={"stage": stage.value},
            )
            wrapped = UnexpectedCommandFailure(
                f"Error occurred in stage '{stage.value}': {e}",
                stage=stage.value,
                cause=e,
            )
            return StageResult(stage, False, task["fatal"], error=wrapped)
        self.context[f"{stage.value}_result"] = value
        return StageResult(stage, True, task["fatal"], value=value)

    def run(self) -> bool:
        """
        Executes all added stages in sequence.

        Returns:
            True if every fatal stage completed, False if the run halted.
        """
        for i, task in enumerate(self.tasks):
            stage: PipelineState = task["stage"]
            self.state = stage
            log_extra = {"stage": stage.value}
            self.logger.debug(f"--- Stage {i + 1}: {stage.value} ---", extra=log_extra)

            result = self._run_stage(task)
            self.results.append(result)
            if result.succeeded:
                continue

            error = result.error
            if not task["fatal"]:
                self.logger.warning(
                    f"Stage '{stage.value}' failed but is non-fatal, continuing: {error}",
                    extra=log_extra,
                )
                continue

            self.logger.error(str(error), extra=log_extra)
            self.logger.error(
                f"Halting at stage '{stage.value}' ({error.kind if error else 'unknown'}).",
                extra=log_extra,
            )
            self.state = PipelineState.FAILED
            return False

        self.state = PipelineState.COMPLETE
        return True
