"""arduswift - Embedded Swift build orchestration for Arduino boards."""

__version__ = "0.1.0"
