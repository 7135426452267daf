"""
The CONTROLLER layer drives the cubes: animation, network annotation, layout,
picking and the synchronization of the three views.
It has NO knowledge of Qt widgets.
"""
