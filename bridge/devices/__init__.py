"""
Device drivers: fiscal registers and POS terminals.
"""
