"""Account identity helpers."""
