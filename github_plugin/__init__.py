"""
GitHub Agent Plugin
===================

A chat-agent plugin that clones GitHub repositories, indexes their files
as embeddings, answers questions about them and opens pull requests.

Components:
- agents: Chat actions, plugin registry and the Evidence Gatherer
- services: Repositories, embeddings, text generation, store, GitHub
- api: FastAPI endpoints
- models: Pydantic data models
- core: Configuration and dependencies
"""

__version__ = "0.3.0"
