"""
Game engine: session models, persistence and the tick scheduler.
"""
