"""Groq chat-completions gateway."""
