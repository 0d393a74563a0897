"""
Newsdesk Modules
================

Flask blueprint modules for admin resources.
"""

__all__ = ['news']
