# -*- coding: utf-8 -*-

"""
This file defines the labels given to critical points and separatrices
"""

from enum import Enum


class CriticalPointType(str, Enum):
    minimum = "minimum"
    one_saddle = "1-saddle"
    two_saddle = "2-saddle"
    maximum = "maximum"

    def __str__(self):
        return self.value

    @classmethod
    def from_index(cls, index: int, dimension: int):
        """
        The type of a critical cell of the given Morse index on a mesh of the
        given dimension.
        """
        if index == 0:
            return cls.minimum
        if index == dimension:
            return cls.maximum
        if index == 1:
            return cls.one_saddle
        return cls.two_saddle


class SeparatrixType(str, Enum):
    descending = "descending"
    saddle_connector = "saddle connector"
    ascending = "ascending"

    def __str__(self):
        return self.value

    @property
    def code(self) -> int:
        """The integer stored in the separatrix type arrays"""
        return list(SeparatrixType).index(self)

    @classmethod
    def from_code(cls, code: int):
        return list(cls)[code]
