# promptdoc/core/__init__.py
"""
The rendering engine: node model, evaluation contexts, expressions,
interpolation, conditional and loop evaluation, the component registry and
the recursive renderer.
"""
