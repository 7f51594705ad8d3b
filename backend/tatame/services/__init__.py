"""
Services Layer

Bracket logic for the organizer endpoints:
- slot_repair / bracket_builder are pure and never touch the database
- slot_persistence, bracket_lock and bracket_view take a Session and
  commit only where documented
- Nothing here depends on HTTP request/response objects
"""
