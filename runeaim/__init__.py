"""Serial frame transport, rune detection post-processing, rotation curve fitting and aiming geometry."""

__version__ = "0.1.0"