"""
whopbot - moderation and utility chat bot for Whop chat feeds.
"""

__version__ = "0.1.0"
__logo__ = "🛡️"
