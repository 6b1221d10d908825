"""standup: GitHub activity and calendar meetings rendered as a standup report."""

__version__ = "0.1.0"
