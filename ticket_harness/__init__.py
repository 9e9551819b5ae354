"""
Concurrency-correctness harness for ticket reservation services.
"""

__version__ = "1.0.0"
