"""Business idea brainstorming and validation on top of multiple LLM providers."""

__version__ = "0.1.0"
