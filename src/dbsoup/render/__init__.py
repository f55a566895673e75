"""Consumers of the document model: text formatter, statistics, Mermaid diagrams."""

from dbsoup.render.generator import DBSoupGenerator, GeneratorConfig, format_document
from dbsoup.render.mermaid import MermaidConfig, MermaidTheme, generate_mermaid
from dbsoup.render.statistics import SchemaStatistics, generate_statistics, render_statistics

__all__ = [
    "DBSoupGenerator",
    "GeneratorConfig",
    "format_document",
    "MermaidConfig",
    "MermaidTheme",
    "generate_mermaid",
    "SchemaStatistics",
    "generate_statistics",
    "render_statistics",
]
