"""memos-sync: mirror Memos notes and resources into a local folder."""

__version__ = "0.3.0"
