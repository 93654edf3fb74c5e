"""Ollama-backed implementations of the collaborator protocols."""

from __future__ import annotations

from redraft.services.backend import OllamaServices
from redraft.services.ollama import GenerateOptions, OllamaClient, OllamaError

__all__ = ["GenerateOptions", "OllamaClient", "OllamaError", "OllamaServices"]
