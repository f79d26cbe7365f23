"""Context-assembly pipeline for a personal assistant.

Turns enrichments attached to a conversation turn into dispatcher
commands, executes them with per-command isolation and schema
deduplication, and records the outcome in session history.
"""

__version__ = "0.1.0"
