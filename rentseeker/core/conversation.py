from dataclasses import dataclass
from enum import Enum
import logging

from rentseeker.core.state import TRANSITIONS, IllegalTransition, Stage, UserSession
from rentseeker.schemas.search import SelectionSet
from rentseeker.services.filters import (
    BEDROOM_OPTIONS,
    FURNISHED_OPTIONS,
    PROPERTY_TYPE_OPTIONS,
    is_valid_price_range,
)

logger = logging.getLogger(__name__)

DONE = "done"
LOCATION = "location"


class Outcome(str, Enum):
    TOGGLED = "toggled"                # A multi-select option flipped, stage unchanged
    ADVANCED = "advanced"              # Stage moved forward
    INVALID = "invalid"                # Expected input, but it failed validation
    NOT_UNDERSTOOD = "not_understood"  # Nothing expected matches this input


@dataclass
class StepResult:
    outcome: Outcome
    stage: Stage


@dataclass(frozen=True)
class MultiSelectStep:
    stage: Stage
    field: str
    labels: tuple
    next_stage: Stage


# Callback prefix -> the multi-select question it answers
MULTI_SELECT_STEPS = {
    "property_type": MultiSelectStep(
        Stage.AWAITING_PROPERTY_TYPE, "property_types", PROPERTY_TYPE_OPTIONS, Stage.AWAITING_BEDROOMS
    ),
    "bedrooms": MultiSelectStep(
        Stage.AWAITING_BEDROOMS, "bedroom_options", BEDROOM_OPTIONS, Stage.AWAITING_PRICE_RANGE
    ),
    "furnished": MultiSelectStep(
        Stage.AWAITING_FURNISHED, "furnished_options", FURNISHED_OPTIONS, Stage.AWAITING_LOCATION
    ),
}

STEP_FOR_STAGE = {step.stage: step for step in MULTI_SELECT_STEPS.values()}


class ConversationStateMachine:
    """
    Applies inbound selections and free text to a UserSession.

    Pure state logic: no I/O, no messages. The caller is responsible for
    holding the user's lock and for telling the user what happened.
    """

    @staticmethod
    def can_transition(session: UserSession, target: Stage) -> bool:
        return target in TRANSITIONS[session.stage]

    def transition(self, session: UserSession, target: Stage) -> None:
        if not self.can_transition(session, target):
            raise IllegalTransition(session.stage, target)
        logger.debug(f"Stage {session.stage.value} -> {target.value}")
        session.stage = target

        # Every option starts unchosen so the keyboard can list them all
        step = STEP_FOR_STAGE.get(target)
        if step is not None:
            options = getattr(session.selections, step.field)
            for label in step.labels:
                options.setdefault(label, False)

    def restart(self, session: UserSession) -> None:
        """Explicit session start: the only way back to INITIAL."""
        session.stage = Stage.INITIAL
        session.selections = SelectionSet()

    def begin(self, session: UserSession) -> StepResult:
        """Starts collecting preferences from scratch."""
        if not self.can_transition(session, Stage.AWAITING_PROPERTY_TYPE):
            raise IllegalTransition(session.stage, Stage.AWAITING_PROPERTY_TYPE)
        session.selections = SelectionSet()
        self.transition(session, Stage.AWAITING_PROPERTY_TYPE)
        return StepResult(Outcome.ADVANCED, session.stage)

    def offer_saved(self, session: UserSession) -> StepResult:
        self.transition(session, Stage.AWAITING_SAVED_CHOICE)
        return StepResult(Outcome.ADVANCED, session.stage)

    def reuse_saved(self, session: UserSession, selections: SelectionSet) -> StepResult:
        self.transition(session, Stage.SHOWING_SUMMARY)
        session.selections = selections
        return StepResult(Outcome.ADVANCED, session.stage)

    def select(self, session: UserSession, dimension: str, label: str) -> StepResult:
        """Handles a button press: '<dimension>:<label>' or '<dimension>:done'."""
        if dimension == LOCATION:
            return self._choose_location(session, label)

        step = MULTI_SELECT_STEPS.get(dimension)
        if step is None or (label != DONE and label not in step.labels):
            return self._not_understood(session)

        # The first question can be answered straight from the initial stage
        if session.stage == Stage.INITIAL and step.stage == Stage.AWAITING_PROPERTY_TYPE:
            self.begin(session)

        if session.stage != step.stage:
            return self._not_understood(session)

        if label == DONE:
            self.transition(session, step.next_stage)
            return StepResult(Outcome.ADVANCED, session.stage)

        options = getattr(session.selections, step.field)
        options[label] = not options.get(label, False)
        return StepResult(Outcome.TOGGLED, session.stage)

    def submit_text(self, session: UserSession, text: str) -> StepResult:
        """Handles a free-text reply for the stages that expect one."""
        text = (text or "").strip()

        if session.stage == Stage.AWAITING_PRICE_RANGE:
            if not is_valid_price_range(text):
                return StepResult(Outcome.INVALID, session.stage)
            session.selections.price_range = text
            self.transition(session, Stage.AWAITING_FURNISHED)
            return StepResult(Outcome.ADVANCED, session.stage)

        if session.stage == Stage.AWAITING_LOCATION:
            if not text:
                return StepResult(Outcome.INVALID, session.stage)
            session.selections.location = text
            self.transition(session, Stage.SHOWING_SUMMARY)
            return StepResult(Outcome.ADVANCED, session.stage)

        return self._not_understood(session)

    def _choose_location(self, session: UserSession, area: str) -> StepResult:
        if session.stage != Stage.AWAITING_LOCATION or not area.strip():
            return self._not_understood(session)
        session.selections.location = area.strip()
        self.transition(session, Stage.SHOWING_SUMMARY)
        return StepResult(Outcome.ADVANCED, session.stage)

    @staticmethod
    def _not_understood(session: UserSession) -> StepResult:
        logger.info(f"Unexpected input for stage {session.stage.value}")
        return StepResult(Outcome.NOT_UNDERSTOOD, session.stage)
