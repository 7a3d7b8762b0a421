"""
DocTags Reconstruction
======================

Rebuilds structured output from the tagged markup emitted by document
vision-language models.

Main components:
- Tag tokenizer for OTSL table streams
- Table grid building and rowspan/colspan resolution
- HTML and Markdown table rendering
- Ordered section extraction from DocTags documents
- Markdown and JSON document rendering
- Multi-page export
"""

__version__ = "1.0.0"
__author__ = "DocTags Reconstruction Team"
