"""Service layer: toggle safety, hotkey registry, and the display state store.

Services may import from domain and infrastructure layers.
They must never import from commands or output.
"""
