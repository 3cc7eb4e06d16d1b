"""
Services layer - business logic goes here, not in routes.

- map_engine: pure clustering / viewport computation
- map_sessions: in-memory registry of interactive map sessions
- issue_store: read-only access to the issues collection
"""
