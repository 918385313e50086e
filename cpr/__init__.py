"""
cpr - scaffold new projects from git-hosted templates.
"""

__version__ = "0.1.6"
