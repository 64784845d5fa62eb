"""Storage, codec and id adapters for the note store."""
