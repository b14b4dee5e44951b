"""Semi-expendable property custody core."""

__version__ = "1.0.0"
