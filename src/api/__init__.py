"""HTTP API layer (FastAPI).

This module exposes a small, versioned `/api/v1` surface that a UI can use to:
- submit a request to the mock backend and cancel it
- report that the request form was edited (silent cancellation)
- read the lifecycle state, remaining budget and trace events

The API is intentionally thin: core behavior lives in `src/runtime`.
"""
