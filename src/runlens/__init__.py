"""runlens: waterfall timelines for assistant runs."""

__version__ = "0.1.0"
