"""
The MODEL layer contains pure data structures and geometry.
It has NO knowledge of Qt signals or the renderer (PyVista).
It deals with Tiles, Adjacency, Patterns and I/O.
"""
