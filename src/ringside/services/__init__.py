"""Service layer: roster operations returning ServiceResult.

Services may import from domain, orchestration, and infrastructure layers.
They must never import from commands or output.
"""
