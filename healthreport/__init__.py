"""
Health Report Engine

Turns stored assessment records into per-session PDF reports driven by
declarative, per-assessment-type report definitions.
"""
__version__ = "1.0.0"
