"""
Pydantic schema definitions for API payloads.

Schemas are separated from the store rows to decouple the API
representation (camelCase JSON) from persistence (snake_case columns).
"""
