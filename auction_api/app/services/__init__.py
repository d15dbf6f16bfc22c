"""
Service layer.

Services encapsulate the business rules of a domain and work on a store
handle given to them, so API handlers stay free of persistence details.
"""
