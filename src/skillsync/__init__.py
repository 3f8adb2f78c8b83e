"""
skillsync - Propagates skills into many repositories without clobbering local edits.
"""

__version__ = "0.1.0"
