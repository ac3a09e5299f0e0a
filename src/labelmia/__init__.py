"""labelmia: label-only membership inference via HopSkipJump boundary distances."""

__version__ = "0.1.0"
