# -*- coding: utf-8 -*-

from contextlib import contextmanager

import numba


@contextmanager
def numba_threads(thread_number: int):
    """
    Sets the number of threads numba's parallel loops use for the duration
    of the block and restores the previous value afterwards.
    """
    previous = numba.get_num_threads()
    numba.set_num_threads(max(1, min(thread_number, numba.config.NUMBA_NUM_THREADS)))
    try:
        yield
    finally:
        numba.set_num_threads(previous)
