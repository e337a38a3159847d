"""Container listing, control, stats, events and client fan-out across Docker hosts."""

__version__ = "0.1.0"