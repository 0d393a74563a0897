"""
News Admin Module
=================

Admin resource for news items. Plugs into the host application's admin area.

Provides:
- Create and edit forms whose slug follows the title until edited by hand
- Block-based content (headings and paragraphs)
- Searchable, sortable listing with bulk delete
"""

from flask import Blueprint

news_bp = Blueprint(
    'news_admin',
    __name__,
    url_prefix='/admin/news'
)

from . import routes

__all__ = ['news_bp']
