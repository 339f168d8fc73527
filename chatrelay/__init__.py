"""chat-relay: tiered LLM orchestration for multi-turn coding sessions."""
