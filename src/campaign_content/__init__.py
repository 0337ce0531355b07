"""campaign-content: AI content generation for marketing campaigns."""

__version__ = "0.1.0"
