"""Domain layer — entities, enums, lifecycle rules, and pricing.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
