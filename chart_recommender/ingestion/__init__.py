"""
Ingestion layer: seed JSON import into the local SQLite database.

Submodules:
  seed_loader  - parses charts, tier lists, titles, bounties and players,
                 checks chart references, then upserts them.
"""
