"""
Kompo core: request context, boot info, validation rules and helpers.

No imports from komposers, routing or server.
"""
