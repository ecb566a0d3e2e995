"""
Version 1 of the HTTP gateway to the asset registry.
"""
