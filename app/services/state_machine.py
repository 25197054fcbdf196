from typing import Optional

from app.models.conversation import StepId
from app.services.flow import Category


class InvalidTransitionError(Exception):
    def __init__(self, from_step: StepId, to_step: StepId, category: Optional[Category] = None):
        self.from_step = from_step
        self.to_step = to_step
        self.category = category
        label = category.key if category else "no category"
        super().__init__(f"Invalid transition ({label}): {from_step.value} -> {to_step.value}")


def steps_for(category: Category) -> tuple[StepId, ...]:
    """Ordered path through the flow for one category, starting at START."""
    return (
        StepId.START,
        StepId.AWAITING_NAME,
        *(f.step for f in category.fields),
        category.detail.step,
    )


def next_step(category: Category, step: StepId) -> Optional[StepId]:
    """Successor of ``step`` for this category, or None if ``step`` is terminal."""
    path = steps_for(category)
    try:
        index = path.index(step)
    except ValueError:
        return None
    if index + 1 >= len(path):
        return None
    return path[index + 1]


def is_terminal(category: Category, step: StepId) -> bool:
    return step == category.detail.step


def can_transition(category: Category, from_step: StepId, to_step: StepId) -> bool:
    """Check if transition is valid.

    Forward edges follow the category path one step at a time; any step may
    fall back to START (reset).
    """
    if to_step == StepId.START:
        return True
    return next_step(category, from_step) == to_step


def transition(category: Category, from_step: StepId, to_step: StepId) -> StepId:
    """Perform step transition. Raises InvalidTransitionError if not allowed."""
    if not can_transition(category, from_step, to_step):
        raise InvalidTransitionError(from_step, to_step, category)
    return to_step
