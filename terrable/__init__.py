"""terrable — fetch, verify and switch between terraform versions."""

__version__ = "0.1.0"
