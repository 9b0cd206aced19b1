"""
Hexterritory
============
Territory selection and texture projection engine for sponsor tiles on a
hexasphere.
"""
