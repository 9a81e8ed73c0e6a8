# Routes package init
"""
Quillpost Backend — API Routes Package
========================================

Route Inventory:
    - blogs.py:   GET  /api/blogs   (list posts, newest first)
                  POST /api/blogs   (create a post)
    - health.py:  GET  /health      (service health check)

Routes stay thin: read the request, call the repository, return an envelope.
Errors propagate to the handlers registered in main.py.
"""
