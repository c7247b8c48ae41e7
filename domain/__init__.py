"""
Domain layer - ORM models, value objects and validation schemas.
"""
