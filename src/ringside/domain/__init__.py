"""Domain layer: entity capabilities, lifecycle rules, and errors.

This layer depends only on stdlib.
It must never import from orchestration, services, infrastructure, commands, or config.
"""
