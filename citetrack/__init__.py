"""
Citetrack AI Citation Tracker

Tracks how often a brand is cited by AI answer engines:
1. Runs tracked queries against ChatGPT, Perplexity and Gemini
2. Detects brand/domain citations in the free-text answers
3. Stores every check as an append-only citation time series
4. Schedules runs per user within their plan quota
"""

__version__ = "0.1.0"
