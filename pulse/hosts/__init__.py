"""pulse.hosts package exports."""

from pulse.hosts.poll import DirectoryPollHost

__all__ = [
    "DirectoryPollHost",
]
