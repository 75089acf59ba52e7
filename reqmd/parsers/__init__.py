"""Parsers for the two reqmd mini-grammars."""

from .markdown import MarkdownDocument, MarkdownParser
from .source import SourceDocument, SourceParser

__all__ = ["MarkdownDocument", "MarkdownParser", "SourceDocument", "SourceParser"]
