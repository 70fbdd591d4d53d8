"""ac: a local, session-aware issue tracker stored as JSONL."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("ac-tracker")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

from ac.core import Issue, IssueStore

__all__ = ["Issue", "IssueStore", "__version__"]
