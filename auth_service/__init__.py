"""Credential and session service: register, login, refresh rotation and revocation."""

__version__ = "0.1.0"
