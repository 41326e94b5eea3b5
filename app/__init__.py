"""
HTTP layer: FastAPI application exposing upload and analysis endpoints.
"""
