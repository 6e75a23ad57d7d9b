from .state import IllegalTransition, Stage, UserSession
from .session_store import InMemorySessionStore, SessionStore
from .conversation import ConversationStateMachine, Outcome, StepResult

__all__ = [
    'ConversationStateMachine',
    'IllegalTransition',
    'InMemorySessionStore',
    'Outcome',
    'SessionStore',
    'Stage',
    'StepResult',
    'UserSession',
]
