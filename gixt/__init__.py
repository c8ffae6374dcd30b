"""gixt - run code directly from GitHub gists."""

__version__ = '0.4.0'
