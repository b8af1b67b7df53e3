"""ttreg — account registration for TeamTalk servers."""

__version__ = "0.1.0"
