"""Meetpoll - pick a meeting time and place without accounts"""

__version__ = "1.0.0"
