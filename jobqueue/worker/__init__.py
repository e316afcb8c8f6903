"""
Worker process and handler registry.
"""
