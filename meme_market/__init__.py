"""
Meme Market Correlation

A research tool that compares NIFTY 50 price volatility with the engagement
of trending Indian meme subreddits and summarizes how the two move together.
"""

__version__ = "0.1.0"
