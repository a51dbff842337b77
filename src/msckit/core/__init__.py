# -*- coding: utf-8 -*-

from .utilities import MorseSmaleConfig  # isort:skip

from .toolkit import Triangulation  # isort:skip

from .gradient import DiscreteGradient, GradientSimplifier  # isort:skip

from .morse_smale import MorseSmaleComplex, get_pipeline  # isort:skip
