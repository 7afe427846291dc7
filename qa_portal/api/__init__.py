"""Q&A portal REST API package.

Sub-modules expose FastAPI routers for each domain:
- search: keyword search, similar questions, auto tags and suggestions
"""
