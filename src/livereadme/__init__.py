"""
livereadme - Terminal-styled GitHub profile README generator.

Polls the GitHub REST API for recent activity, language usage and
repository status, and renders it into a live Markdown profile page.
"""

__version__ = "0.1.0"
__app_name__ = "livereadme"
