"""
Quillpost Backend — Application Package Initializer
=====================================================

What: Marks the `app` directory as a Python package.
Who:  Used by uvicorn (app.main:app), pytest, and app.client consumers.

Architecture Note:
    ┌─────────────────────────────────────┐
    │       Routes (API Handlers)         │  ← validate, respond with envelopes
    ├─────────────────────────────────────┤
    │     Services (Post Repository)      │  ← create/list against the store
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← Post document + API contract
    ├─────────────────────────────────────┤
    │   Database (Connection Manager)     │  ← one shared Cosmos connection
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
