"""
Prompt Scan Engine
==================
Builds a panel of copyable prompts from a styled document, driven by markers
in heading text.

Architecture:
    - Heading Classifier: Finds heading-styled paragraphs and their markers
    - Boundary Resolver: Computes each button's content range (next heading
      of any kind, or document end)
    - Batched Retriever: Resolves every content range in a single request
    - Document Services: In-memory, JSON, DOCX, PDF and HTTP backends
    - Outer Surfaces: click CLI and Flask HTTP API

Markers:
    *Heading   → button (payload = content up to the next heading)
    _Heading   → label (section separator)

Version: 1.0.0
"""

__version__ = "1.0.0"
