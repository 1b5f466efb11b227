"""Domain layer — graph model, selector and property protocols.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
