"""Infrastructure layer — NetworkX graph analysis and JSON graph documents.

This layer depends on stdlib, the domain model and third-party libs
(NetworkX, pydantic). It must never import from services, commands, or output.
"""
