"""
Command-line interface for possaga.
"""
