# -*- coding: utf-8 -*-

"""
Errors raised while building a Morse-Smale complex. Conditions that can be
absorbed locally (e.g. a cell that can not be paired) never raise and simply
end up in the critical cell set.
"""


class DegenerateInputError(ValueError):
    """
    The scalar field can not be turned into a strict total order over the
    vertices, e.g. because of ties not resolved by the offset field or values
    that are not finite.
    """


class DimensionalityError(ValueError):
    """
    The mesh is not made of triangles (2D) or tetrahedra (3D).
    """


class GradientError(RuntimeError):
    """
    The discrete gradient is not a valid acyclic matching. This always points
    at a bug, as every later stage assumes a valid gradient.
    """
