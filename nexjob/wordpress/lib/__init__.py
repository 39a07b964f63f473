# nexjob/wordpress/lib/__init__.py
from __future__ import annotations

# Re-export commonly-used types for convenience
from .client import ContentApiError, WordPressClient
from .models import Article, Author, FilterData, Job, JobsPage

__all__ = [
    "Article",
    "Author",
    "ContentApiError",
    "FilterData",
    "Job",
    "JobsPage",
    "WordPressClient",
]
