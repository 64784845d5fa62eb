"""Pure note-linking and retrieval core."""
