from app.services.conversation_store import InMemoryConversationStore, RecentMessageIds
from app.services.dialogue_engine import DialogueEngine, Turn
from app.services.flow import DEFAULT_FLOW, FlowDefinition
from app.services.normalizer import extract_messages, normalize_payload
from app.services.state_machine import InvalidTransitionError, can_transition, next_step, steps_for, transition
