"""Built-in plugins shipped with dpui."""
