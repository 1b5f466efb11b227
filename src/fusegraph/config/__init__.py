"""Configuration layer — settings, config discovery and logging setup."""
