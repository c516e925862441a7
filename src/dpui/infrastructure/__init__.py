"""Infrastructure layer: displayplacer subprocess, preset file, OS hotkeys, timers.

Infrastructure may import from domain but never from services or commands.
"""
