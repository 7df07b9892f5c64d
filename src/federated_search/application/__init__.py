"""
Application layer: the search pipeline and the suggestion engine.
"""
