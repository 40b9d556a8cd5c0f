"""
HTTP surface for the canvas engine (one engine per editing session).
"""
