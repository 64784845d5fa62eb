"""Exception types raised outside the pure core."""


class ThicketError(Exception):
    """Base class for all thicket errors."""


class NoteNotFoundError(ThicketError, KeyError):
    def __init__(self, note_id: str):
        super().__init__(note_id)
        self.note_id = note_id

    def __str__(self) -> str:
        return f"Note {self.note_id} not found"


class ImmutableFieldError(ThicketError, ValueError):
    def __init__(self, field: str):
        super().__init__(field)
        self.field = field

    def __str__(self) -> str:
        return f"Field '{self.field}' cannot be changed"


class ConfigError(ThicketError, ValueError):
    """Invalid value in thicket.toml."""
