"""
quotesmith.llm - Remote generation layer.

- builder: assembles a GenerationRequest and owns the length-bucket table
- templates: renders the instruction and system prompts with Jinja2
- parsing: validates the structured JSON the model returns
- client: sends requests through litellm with bounded retry
"""

from __future__ import annotations
