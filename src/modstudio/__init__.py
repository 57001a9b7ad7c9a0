"""
R5V Mod Studio - project document engine and editor settings.
"""

__version__ = "0.1.0"
