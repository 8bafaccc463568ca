"""
Process host: settings, the FastAPI application and the manual tick surface.
"""
