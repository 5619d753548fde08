"""
AI collaborators

Column cleaning and column naming backed by OpenAI or Ollama.
"""

from .text_cleaner import AITextCleaner, TransformError

__all__ = ["AITextCleaner", "TransformError"]
