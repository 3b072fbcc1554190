"""
filterbar - filter query tokenizer and value dropdown engine
"""

__version__ = "0.3.0"
