"""RentSeeker: a Telegram bot for finding rental properties."""

__version__ = "1.0.0"
