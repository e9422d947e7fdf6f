"""Quill — a small multi-user publishing platform.

Registered users authenticate with email/password, receive a bearer
token, and create, edit and delete the posts they own. Anonymous
visitors can read everything.
"""

__version__ = "0.1.0"
