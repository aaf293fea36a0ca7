"""
Action Vocabulary and Model Contract

Typed shapes exchanged with the model:

- Action: a closed, tagged union over the eight action kinds the agent may take
- PlanActionStep: one planning thought paired with exactly one action
- TestPlan: the planning response carrying the list of specs
- TestResult: the immutable outcome recorded once per attempted spec

Field names on the wire are camelCase (``clickCount``, ``deltaX``...);
Python code uses the snake_case attribute names.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class SpecStatus(str, Enum):
    """Final status of a spec."""
    PASSED = "passed"
    FAILED = "failed"


class _ContractModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _ActionModel(_ContractModel):
    # A kind may only carry its own fields
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    def wire_fields(self) -> Dict[str, Any]:
        """Wire representation of this action."""
        return self.model_dump(by_alias=True, mode="json")


class _TargetedAction(_ActionModel):
    selector: str = Field(..., description="CSS selector for the target element")
    nth: int = Field(0, ge=0, description="Zero-based index among the elements the selector matches")


class HoverAction(_TargetedAction):
    action: Literal["hover"] = "hover"


class ClickAction(_TargetedAction):
    action: Literal["click"] = "click"
    click_count: int = Field(1, ge=1, le=3)


class FillAction(_TargetedAction):
    action: Literal["fill"] = "fill"
    text: str


class PressAction(_TargetedAction):
    action: Literal["press"] = "press"
    key: str = Field(..., description="Key name, e.g. Enter, Tab, ArrowDown")


class ScrollAction(_ActionModel):
    action: Literal["scroll"] = "scroll"
    delta_x: float
    delta_y: float


class HardWaitAction(_ActionModel):
    action: Literal["hardWait"] = "hardWait"
    milliseconds: int = Field(..., ge=0)


class NavigateAction(_ActionModel):
    action: Literal["navigate"] = "navigate"
    url: str


class MarkAsCompleteAction(_ActionModel):
    action: Literal["markAsComplete"] = "markAsComplete"
    reason: SpecStatus
    explanation_why_spec_complete: str


Action = Annotated[
    Union[
        HoverAction,
        ClickAction,
        FillAction,
        PressAction,
        ScrollAction,
        HardWaitAction,
        NavigateAction,
        MarkAsCompleteAction,
    ],
    Field(discriminator="action"),
]

ACTION_KINDS = (
    "hover",
    "click",
    "fill",
    "press",
    "scroll",
    "hardWait",
    "navigate",
    "markAsComplete",
)


class PlanActionStep(_ContractModel):
    """The unit the model returns on every turn of the action loop."""
    planning_thought_about_the_action_i_will_take: str
    action: Action

    @property
    def thought(self) -> str:
        return self.planning_thought_about_the_action_i_will_take

    @property
    def is_complete(self) -> bool:
        return isinstance(self.action, MarkAsCompleteAction)

    def to_json(self) -> str:
        return json.dumps(self.model_dump(by_alias=True, mode="json"))


class TestPlan(_ContractModel):
    """Planning response: an ordered list of natural-language specs."""
    __test__ = False

    array_of_specs: List[str]


@dataclass(frozen=True)
class TestResult:
    """Outcome of one spec. Created once, never mutated."""
    __test__ = False

    spec: str
    status: SpecStatus
    actions: Tuple[PlanActionStep, ...] = ()
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    reason: Optional[str] = None
    spec_id: Optional[int] = None

    @property
    def passed(self) -> bool:
        return self.status == SpecStatus.PASSED

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "spec": self.spec,
            "status": self.status.value,
            "actions": [step.model_dump(by_alias=True, mode="json") for step in self.actions],
            "totalInputTokens": self.total_input_tokens,
            "totalOutputTokens": self.total_output_tokens,
        }
        if self.reason is not None:
            data["reason"] = self.reason
        if self.spec_id is not None:
            data["specId"] = self.spec_id
        return data


@dataclass
class Capture:
    """One observation of the page handed to the model."""
    screenshot: bytes
    html: str
    cursor: Tuple[float, float] = (0, 0)
    url: str = ""
    screenshot_path: Optional[str] = None


@dataclass
class ExecutionResult:
    """What the executor reports back for a single action."""
    success: bool
    error: Optional[BaseException] = None
    duration: float = 0.0
