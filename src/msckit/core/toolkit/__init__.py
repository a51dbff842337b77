# -*- coding: utf-8 -*-

from .triangulation import Triangulation
from .scalar_order import get_vertex_order
from .triangulation_numba import get_pl_critical_counts
