from enum import Enum
from typing import Dict, FrozenSet

from pydantic import BaseModel, Field

from rentseeker.schemas.search import SelectionSet


class Stage(str, Enum):
    """Which question the dialogue is currently waiting on."""
    INITIAL = "initial"
    AWAITING_SAVED_CHOICE = "awaiting_saved_choice"
    AWAITING_PROPERTY_TYPE = "awaiting_property_type"
    AWAITING_BEDROOMS = "awaiting_bedrooms"
    AWAITING_PRICE_RANGE = "awaiting_price_range"
    AWAITING_FURNISHED = "awaiting_furnished"
    AWAITING_LOCATION = "awaiting_location"
    SHOWING_SUMMARY = "showing_summary"


# Forward edges only. Going back to INITIAL happens through an explicit
# session start, which is allowed from every stage (see ConversationStateMachine.restart).
TRANSITIONS: Dict[Stage, FrozenSet[Stage]] = {
    Stage.INITIAL: frozenset({Stage.AWAITING_PROPERTY_TYPE, Stage.AWAITING_SAVED_CHOICE}),
    Stage.AWAITING_SAVED_CHOICE: frozenset({Stage.SHOWING_SUMMARY, Stage.AWAITING_PROPERTY_TYPE}),
    Stage.AWAITING_PROPERTY_TYPE: frozenset({Stage.AWAITING_BEDROOMS}),
    Stage.AWAITING_BEDROOMS: frozenset({Stage.AWAITING_PRICE_RANGE}),
    Stage.AWAITING_PRICE_RANGE: frozenset({Stage.AWAITING_FURNISHED}),
    Stage.AWAITING_FURNISHED: frozenset({Stage.AWAITING_LOCATION}),
    Stage.AWAITING_LOCATION: frozenset({Stage.SHOWING_SUMMARY}),
    Stage.SHOWING_SUMMARY: frozenset(),
}


class IllegalTransition(Exception):
    def __init__(self, current: Stage, target: Stage):
        super().__init__(f"Cannot move from '{current.value}' to '{target.value}'")
        self.current = current
        self.target = target


class UserSession(BaseModel):
    """Per-user dialogue state: current stage plus the in-progress selections."""
    stage: Stage = Stage.INITIAL
    selections: SelectionSet = Field(default_factory=SelectionSet)
