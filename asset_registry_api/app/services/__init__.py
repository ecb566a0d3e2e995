"""
Service layer.

``AssetService`` holds the registry's business rules.  It receives
its identity and world state explicitly, so the same logic runs
behind the HTTP gateway, in scripts, and in tests against an
in‑memory store.
"""
