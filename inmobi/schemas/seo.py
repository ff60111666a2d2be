"""
SEO schemas.
"""

from pydantic import BaseModel
from typing import List


class SitemapResponse(BaseModel):
    success: bool
    sitemap_index_path: str
    files: List[str] = []
    url_count: int = 0
