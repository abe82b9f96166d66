"""fieldlog: storage and photo upload adapter for field data-collection forms."""

__version__ = "1.0.0"
