"""
oneword-core

Samples single-word completions from several LLM providers across a
temperature / top-K sweep and reports the resulting word distributions.
"""

__version__ = "0.1.0"
