"""
Infrastructure layer: HTTP source adapters, LLM client and result cache.
"""
