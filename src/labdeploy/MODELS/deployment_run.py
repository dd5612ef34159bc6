"""
Models for a single deployment run: flags, step outcomes and the run state machine.
"""
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from enum import Enum


class DeployFlags(BaseModel):
    """
    Command-line switches for one invocation.

    ``continue_on_init_failure`` replaces the interactive prompt when set:
    None asks the operator, True continues, False aborts.
    """
    model_config = ConfigDict(frozen=True)

    force: bool = False
    skip_init: bool = False
    skip_network: bool = False
    check_only: bool = False
    info_only: bool = False
    continue_on_init_failure: Optional[bool] = None


class RunState(str, Enum):
    """
    States of the deployment sequence. Runs only ever move forward.
    """
    NOT_STARTED = "not-started"
    INITIALIZING = "initializing"
    VALIDATING = "validating"
    STARTING = "starting"
    ATTACHING = "attaching"
    HEALTH_CHECKING = "health-checking"
    DONE = "done"
    ABORTED = "aborted"
    FAILED = "failed"


_ORDER = [
    RunState.NOT_STARTED,
    RunState.INITIALIZING,
    RunState.VALIDATING,
    RunState.STARTING,
    RunState.ATTACHING,
    RunState.HEALTH_CHECKING,
    RunState.DONE,
]

# Side exits allowed from each state
_SIDE_EXITS = {
    RunState.INITIALIZING: {RunState.ABORTED},
    RunState.VALIDATING: {RunState.FAILED},
    RunState.STARTING: {RunState.FAILED},
}


class StepStatus(str, Enum):
    SUCCESS = "success"
    WARNING = "warning"
    FAILURE = "failure"
    SKIPPED = "skipped"


class StepOutcome(BaseModel):
    """
    Result of one step of the sequence.
    """
    model_config = ConfigDict(frozen=True)

    step: str
    status: StepStatus
    message: str = ""
    remedy: Optional[str] = None


class RunResult(BaseModel):
    """
    Summary returned once a run has ended.
    """
    model_config = ConfigDict(frozen=True)

    service: str
    state: RunState
    outcomes: List[StepOutcome] = []

    @property
    def succeeded(self) -> bool:
        return self.state == RunState.DONE

    @property
    def degraded(self) -> bool:
        return any(o.status in (StepStatus.WARNING, StepStatus.FAILURE) for o in self.outcomes)

    @property
    def warnings(self) -> List[StepOutcome]:
        return [o for o in self.outcomes if o.status == StepStatus.WARNING]

    def outcome(self, step: str) -> Optional[StepOutcome]:
        """
        Returns the last outcome recorded for ``step``, if any.
        """
        for o in reversed(self.outcomes):
            if o.step == step:
                return o
        return None


class DeploymentRun(BaseModel):
    """
    Mutable record of an in-flight run for one service.
    """
    service: str
    flags: DeployFlags = Field(default_factory=DeployFlags)
    state: RunState = RunState.NOT_STARTED
    outcomes: List[StepOutcome] = []

    def transition(self, new_state: RunState) -> None:
        """
        Moves the run to ``new_state``.

        :raises ValueError: If the transition would go backwards or is not an allowed side exit.
        """
        if new_state in _SIDE_EXITS.get(self.state, set()):
            self.state = new_state
            return
        if self.state not in _ORDER or new_state not in _ORDER:
            raise ValueError(f"Invalid transition {self.state.value} -> {new_state.value}")
        if _ORDER.index(new_state) <= _ORDER.index(self.state):
            raise ValueError(f"Invalid transition {self.state.value} -> {new_state.value}")
        self.state = new_state

    def record(self, step: str, status: StepStatus, message: str = "",
               remedy: Optional[str] = None) -> StepOutcome:
        outcome = StepOutcome(step=step, status=status, message=message, remedy=remedy)
        self.outcomes.append(outcome)
        return outcome

    def result(self) -> RunResult:
        return RunResult(service=self.service, state=self.state, outcomes=list(self.outcomes))
