# -*- coding: utf-8 -*-

from .config import MorseSmaleConfig
from .exceptions import DegenerateInputError, DimensionalityError, GradientError
from .threads import numba_threads
