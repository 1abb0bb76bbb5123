"""
Request handling utilities: middleware, validation, error mapping and responses.
"""
