"""Domain layer: pure display, canvas, codec and shortcut logic.

Domain modules never import from services, infrastructure, commands, or output.
"""
