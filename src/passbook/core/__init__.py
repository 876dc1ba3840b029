"""Core configuration and application setup."""
