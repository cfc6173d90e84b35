"""ringside: roster lifecycle orchestration for wrestling promotions."""

__version__ = "0.1.0"
