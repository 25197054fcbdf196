"""Per-conversation dialogue engine.

``DialogueEngine.advance`` takes the sender's current state and one inbound
message and returns a ``Turn``: the next state (or None when the conversation
is finished), the replies to send and, on completion, the finalized record.
It performs no I/O and never mutates the state it is given.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Optional

from app.models.conversation import ConversationState, StepId
from app.models.message import InboundMessage, OutboundMessage
from app.models.record import FinalizedRecord
from app.services.finalizer import closing_summary, finalize
from app.services.flow import (
    DEFAULT_FLOW,
    MSG_INVALID_OPTION,
    MSG_TEXT_ONLY,
    Category,
    FieldKind,
    FieldStep,
    FlowDefinition,
)
from app.services.state_machine import is_terminal, next_step, transition


@dataclass
class Turn:
    state: Optional[ConversationState]  # None -> remove from the store
    replies: list[OutboundMessage] = field(default_factory=list)
    record: Optional[FinalizedRecord] = None
    reset: bool = False

    @property
    def finished(self) -> bool:
        return self.state is None


def _join(*parts: Optional[str]) -> str:
    return "\n\n".join(p for p in parts if p)


class DialogueEngine:
    def __init__(self, flow: FlowDefinition = DEFAULT_FLOW):
        self.flow = flow

    def advance(
        self,
        state: ConversationState,
        message: InboundMessage,
        *,
        now: Optional[datetime] = None,
        known_name: Optional[str] = None,
    ) -> Turn:
        now = now or datetime.now(timezone.utc)

        if message.is_text and self.flow.is_reset(message.body):
            return self._restart(state.sender_id, now, reset=True)

        category = self.flow.category_by_key(state.category)
        step = self.flow.field_step(category, state.step)
        if state.step != StepId.START and (category is None or step is None):
            # category no longer in the flow or step unknown for it
            return self._restart(state.sender_id, now, reset=False)

        if not message.is_text:
            return self._reprompt(state, step, now, prefix=MSG_TEXT_ONLY)

        body = message.body.strip()

        if state.step == StepId.START:
            return self._select_category(state, body, now)

        if not body:
            return self._reprompt(state, step, now)

        if step.kind == FieldKind.PRODUCT_MENU:
            return self._select_product(state, category, step, body, now)

        if is_terminal(category, state.step):
            return self._finish(state, category, step, body, message, now, known_name)

        return self._store_and_advance(state, category, step, body, now)

    def _reply(self, state: ConversationState, text: str) -> OutboundMessage:
        return OutboundMessage(recipient=state.sender_id, text=text)

    def _restart(self, sender_id: str, now: datetime, *, reset: bool) -> Turn:
        fresh = ConversationState.fresh(sender_id, now)
        return Turn(state=fresh, replies=[self._reply(fresh, self.flow.menu_text())], reset=reset)

    def _prompt(self, step: Optional[FieldStep]) -> str:
        if step is None:
            return self.flow.menu_text()
        return self.flow.prompt_for(step)

    def _reprompt(
        self,
        state: ConversationState,
        step: Optional[FieldStep],
        now: datetime,
        prefix: Optional[str] = None,
    ) -> Turn:
        touched = replace(state, collected=dict(state.collected), updated_at=now)
        return Turn(state=touched, replies=[self._reply(state, _join(prefix, self._prompt(step)))])

    def _select_category(self, state: ConversationState, body: str, now: datetime) -> Turn:
        category = self.flow.category_for_token(body)
        if category is None:
            return self._reprompt(state, None, now, prefix=MSG_INVALID_OPTION)

        new_state = replace(
            state,
            step=transition(category, StepId.START, StepId.AWAITING_NAME),
            category=category.key,
            collected={},
            updated_at=now,
        )
        text = _join(f"You selected *{category.title}*.", self._prompt(self.flow.name_step))
        return Turn(state=new_state, replies=[self._reply(state, text)])

    def _store_and_advance(
        self,
        state: ConversationState,
        category: Category,
        step: FieldStep,
        value: str,
        now: datetime,
        intro: Optional[str] = None,
    ) -> Turn:
        target = next_step(category, state.step)
        new_state = replace(
            state,
            step=transition(category, state.step, target),
            collected={**state.collected, step.name: value},
            updated_at=now,
        )
        if step == self.flow.name_step:
            intro = intro or f"Thank you, {value}."
        next_field = self.flow.field_step(category, target)
        return Turn(state=new_state, replies=[self._reply(state, _join(intro, self._prompt(next_field)))])

    def _select_product(
        self,
        state: ConversationState,
        category: Category,
        step: FieldStep,
        body: str,
        now: datetime,
    ) -> Turn:
        product = self.flow.product_for_token(body)
        if product is None:
            return self._reprompt(state, step, now, prefix=MSG_INVALID_OPTION)
        return self._store_and_advance(
            state,
            category,
            step,
            product.title,
            now,
            intro=self.flow.catalog_text(product),
        )

    def _finish(
        self,
        state: ConversationState,
        category: Category,
        step: FieldStep,
        body: str,
        message: InboundMessage,
        now: datetime,
        known_name: Optional[str],
    ) -> Turn:
        completed = replace(state, collected={**state.collected, step.name: body}, updated_at=now)
        record = finalize(
            completed,
            category,
            display_name=message.display_name,
            known_name=known_name,
            now=now,
        )
        return Turn(
            state=None,
            replies=[self._reply(state, closing_summary(record, category))],
            record=record,
        )
