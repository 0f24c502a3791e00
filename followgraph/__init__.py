"""followgraph: directed follow graph with mutual status, counters, and cursor walks."""

__version__ = "1.0.0"
