# -*- coding: utf-8 -*-

from .enums import CriticalPointType, SeparatrixType
from .critical_points import CriticalPoints, get_critical_points
from .separatrices import Separatrices1, Separatrices2, get_separatrices1, get_separatrices2
from .segmentation import Segmentation, get_segmentation
from .pipelines import (
    MorseSmaleComplex2D,
    MorseSmaleComplex3D,
    MorseSmaleResult,
    get_pipeline,
)
from .morse_smale_complex import MorseSmaleComplex
