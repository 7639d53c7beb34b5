"""
Parser strategies for project content extraction.

Parsers handle the extraction phase - converting detail pages into
ProjectRecord objects.

Strategies:
- ProjectDetailParser: Parse HTML project detail pages via the extractor chain
"""

from .base import ParserStrategy
from .project_detail import ProjectDetailParser

__all__ = [
    "ParserStrategy",
    "ProjectDetailParser",
]
