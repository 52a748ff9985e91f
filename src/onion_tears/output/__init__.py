"""Text, JSON, Mermaid and HTML renderers."""
