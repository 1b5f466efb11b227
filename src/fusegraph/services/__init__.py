"""Service layer — extraction, surgery and the rewrite pass.

Services may import from domain, infrastructure and plugins.
They must never import from commands or output.
"""
