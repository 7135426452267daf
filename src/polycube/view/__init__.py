"""
The VIEW layer: the scene graph and the three cube views (Qt-free), plus the
Qt/PyVista widgets that draw them.
"""
