"""
Sequencing error model base class

Defines how errors are introduced into a read. The random source is passed
per call so one stream drives the whole run.
"""

from abc import ABC, abstractmethod
from typing import Sequence, Tuple

import numpy as np

from ..rng import RandomSource
from ..seq_utils import NUC_DTYPE


class BaseErrorModel(ABC):
    """Error model base class"""

    # Reference bases past the read end the model may consume (deletions)
    trailing_context: int = 0

    @abstractmethod
    def apply(
        self,
        window: np.ndarray,
        qualities: Sequence[int],
        rng: RandomSource
    ) -> Tuple[np.ndarray, int]:
        """
        Introduce errors into one read.

        Args:
            window: the read's bases, optionally followed by up to
                ``trailing_context`` downstream bases
            qualities: per-base quality scores; their count is the read length
            rng: random source

        Returns:
            (bases of exactly len(qualities), number of errors introduced)
        """

    @property
    @abstractmethod
    def name(self) -> str:
        """Error model name"""


class IdentityErrorModel(BaseErrorModel):
    """No errors: returns the read unchanged"""

    def apply(self, window, qualities, rng):
        return np.asarray(window[:len(qualities)], dtype=NUC_DTYPE), 0

    @property
    def name(self) -> str:
        return "identity"
