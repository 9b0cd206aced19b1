"""
The CONTROLLER layer owns the mutable editing state (selection, assigned
tiles, pattern preview) and notifies listeners through Qt signals.
"""
