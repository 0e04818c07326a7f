"""
schemas/ — Pydantic models for the Brand Command Center

Section documents, provider outputs, sync results, and API request
bodies. Persisted JSON uses camelCase keys; Python code uses snake_case.
"""
