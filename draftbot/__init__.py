"""Instagram DM outreach: pick targets from a row store, draft (and optionally send), record outcomes."""

__version__ = "0.1.0"
