"""Domain Event definitions.

Represents significant occurrences in the life of a queued request that
other parts of the system might react to (logging, metrics, UI progress).
"""
