# Services package init
"""
Quillpost Backend — Services Layer
====================================

What:  Data access sitting between routes (HTTP) and the document store.

Service Inventory:
    - PostRepository: create and list posts in the Cosmos `posts` container
"""
