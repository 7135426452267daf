"""
The MODEL layer contains pure data structures and business logic.
It has NO knowledge of the GUI (Qt) or the Visualization (PyVista).
It deals with records, scales, palettes, style state and I/O.
"""
