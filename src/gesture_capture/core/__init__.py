"""Session orchestration, events and errors."""
