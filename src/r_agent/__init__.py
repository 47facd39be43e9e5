"""
r-agent - a ReAct agent with token-bounded, summarizing memory.
"""

__version__ = "0.1.0"
