"""fixprompt context — conversation storage and context accumulation."""

from fixprompt.context.accumulator import ContextAccumulator
from fixprompt.context.store import ContextStore, InMemoryContextStore

__all__ = ["ContextAccumulator", "ContextStore", "InMemoryContextStore"]
