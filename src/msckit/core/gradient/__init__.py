# -*- coding: utf-8 -*-

from .discrete_gradient import DiscreteGradient
from .simplification import GradientSimplifier, SimplificationReport
from .vpaths import VPathTree, ascending_tree, descending_tree, reverse_path
