"""
Quality score model

A position-dependent Markov chain. Position 0 is drawn from the seed
distribution; every later position i draws from the distribution kept for
(column i, index of the previous score). Reads whose length differs from
the model's assumed length reuse columns through an integer remap.
"""

import json
import logging
import math
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from .distributions import DiscreteDistribution
from .errors import InvalidWeightsError, ModelFormatError
from .rng import RandomSource
from .seq_utils import quality_string

logger = logging.getLogger(__name__)

DEFAULT_QUALITY_SCORES = [2, 11, 25, 37]
DEFAULT_SEED_WEIGHTS = [1, 3, 5, 1]
DEFAULT_TRANSITION_WEIGHTS = [1, 1, 2, 5]
DEFAULT_READ_LENGTH = 150

# Raw per-position frequencies become integer weights at this resolution
RAW_STATS_SCALE = 10000.0


def _first_present(d: dict, *keys):
    for key in keys:
        if key in d:
            return d[key]
    raise ModelFormatError(f"Quality model is missing field: {' / '.join(keys)}")


class QualityScoreModel:
    """
    Args:
        quality_score_options: possible scores, ascending
        binned_scores: whether scores are binned or continuous
        assumed_read_length: read length A the tables were built for
        seed_weights: weights over the options for position 0
        weights_from_one: A-1 columns (positions 1..A-1), each holding one
            weight vector per previous-score index. A leading placeholder
            column for position 0 is also accepted and ignored.

    Raises:
        ModelFormatError: If the tables do not fit together
    """

    def __init__(
        self,
        quality_score_options: Sequence[int],
        binned_scores: bool,
        assumed_read_length: int,
        seed_weights: Sequence[float],
        weights_from_one: Sequence[Sequence[Sequence[float]]]
    ):
        options = [int(q) for q in quality_score_options]
        if not options:
            raise ModelFormatError("quality_score_options is empty")
        if options != sorted(options) or len(set(options)) != len(options):
            raise ModelFormatError(f"quality_score_options must be strictly ascending, got {options}")
        if int(assumed_read_length) < 2:
            raise ModelFormatError(
                f"assumed_read_length must be >= 2 to cover longer reads, got {assumed_read_length}"
            )
        assumed_read_length = int(assumed_read_length)
        n_scores = len(options)

        columns = [list(col) for col in weights_from_one]
        if len(columns) == assumed_read_length:
            columns = columns[1:]
        if len(columns) != assumed_read_length - 1:
            raise ModelFormatError(
                f"Expected {assumed_read_length - 1} positional columns "
                f"(or {assumed_read_length} with a placeholder), got {len(weights_from_one)}"
            )
        if len(seed_weights) != n_scores:
            raise ModelFormatError(f"seed_weights needs {n_scores} entries, got {len(seed_weights)}")

        self.quality_score_options = options
        self.binned_scores = bool(binned_scores)
        self.assumed_read_length = assumed_read_length
        self.seed_weights = [float(w) for w in seed_weights]
        self.weights_from_one: List[List[List[float]]] = []
        self._score_index: Dict[int, int] = {q: i for i, q in enumerate(options)}

        try:
            self.seed_dist = DiscreteDistribution(self.seed_weights)
        except InvalidWeightsError as exc:
            raise ModelFormatError(f"Invalid seed weights: {exc}") from exc

        # Columns are indexed by position; slot 0 is the seed and stays empty
        self.distros_from_one: List[List[Optional[DiscreteDistribution]]] = [[]]
        for position, column in enumerate(columns, start=1):
            if len(column) != n_scores:
                raise ModelFormatError(
                    f"Position {position}: expected {n_scores} weight vectors, got {len(column)}"
                )
            weight_rows = []
            dist_row = []
            for weights in column:
                if len(weights) != n_scores:
                    raise ModelFormatError(
                        f"Position {position}: weight vectors need {n_scores} entries, got {len(weights)}"
                    )
                row = [float(w) for w in weights]
                weight_rows.append(row)
                # An all-zero row is legal as long as its previous score is unreachable
                dist_row.append(DiscreteDistribution(row) if any(w > 0 for w in row) else None)
            self.weights_from_one.append(weight_rows)
            self.distros_from_one.append(dist_row)

    # =========================================================================
    # Construction
    # =========================================================================

    @classmethod
    def default(cls) -> "QualityScoreModel":
        n_scores = len(DEFAULT_QUALITY_SCORES)
        column = [list(DEFAULT_TRANSITION_WEIGHTS) for _ in range(n_scores)]
        return cls(
            quality_score_options=DEFAULT_QUALITY_SCORES,
            binned_scores=True,
            assumed_read_length=DEFAULT_READ_LENGTH,
            seed_weights=DEFAULT_SEED_WEIGHTS,
            weights_from_one=[column for _ in range(DEFAULT_READ_LENGTH - 1)],
        )

    @classmethod
    def from_raw_stats(
        cls,
        quality_score_options: Sequence[int],
        binned_scores: bool,
        assumed_read_length: int,
        seed_weights: Sequence[float],
        stats_from_one: Sequence
    ) -> "QualityScoreModel":
        """
        Build a model from per-position frequency statistics.

        Frequencies are scaled by 10000 and rounded to integer weights.
        ``stats_from_one`` is either positions x previous score x next score,
        or positions x next score when the next score does not depend on the
        previous one.
        """
        def scale(values):
            try:
                return [int(math.floor(float(v) * RAW_STATS_SCALE + 0.5)) for v in values]
            except (TypeError, ValueError) as exc:
                raise ModelFormatError(f"Non-numeric quality statistic: {exc}") from exc

        n_scores = len(quality_score_options)
        columns = []
        for column in stats_from_one:
            column = list(column)
            if column and isinstance(column[0], (list, tuple)):
                columns.append([scale(row) for row in column])
            else:
                scaled = scale(column)
                columns.append([list(scaled) for _ in range(n_scores)])
        return cls(
            quality_score_options=quality_score_options,
            binned_scores=binned_scores,
            assumed_read_length=assumed_read_length,
            seed_weights=scale(seed_weights),
            weights_from_one=columns,
        )

    # =========================================================================
    # Generation
    # =========================================================================

    def quality_index_remap(self, read_length: int) -> List[int]:
        """
        Column used for each output position 1..read_length-1.

        Identity when the lengths match; otherwise ``max(1, A * i // R)``.
        """
        if read_length == self.assumed_read_length:
            return list(range(1, read_length))
        assumed = self.assumed_read_length
        return [max(1, (assumed * i) // read_length) for i in range(1, read_length)]

    def generate_quality_scores(self, read_length: int, rng: RandomSource) -> List[int]:
        """
        Quality scores for one read.

        Args:
            read_length: number of scores to produce
            rng: random source

        Returns:
            ``read_length`` scores, each one of quality_score_options

        Raises:
            ModelFormatError: If a previous score has no table entry
        """
        if read_length < 1:
            return []
        options = self.quality_score_options
        scores = [options[self.seed_dist.sample(rng)]]
        for column in self.quality_index_remap(read_length):
            previous = scores[-1]
            prev_index = self._score_index.get(previous)
            if prev_index is None:
                raise ModelFormatError(f"Score {previous} not found in quality_score_options")
            dist = self.distros_from_one[column][prev_index]
            if dist is None:
                raise ModelFormatError(
                    f"No transition weights at position {column} after score {previous}"
                )
            scores.append(options[dist.sample(rng)])
        return scores

    def to_quality_string(self, scores: Sequence[int]) -> str:
        return quality_string(scores)

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> dict:
        return {
            "quality_score_options": list(self.quality_score_options),
            "binned_scores": self.binned_scores,
            "assumed_read_length": self.assumed_read_length,
            "seed_weights": list(self.seed_weights),
            "weights_from_one": [[list(row) for row in column] for column in self.weights_from_one],
        }

    @classmethod
    def from_dict(cls, d: dict) -> "QualityScoreModel":
        """Accepts ``seed_weights``/``seed_dist`` and ``weights_from_one``/``distros_from_one``."""
        if not isinstance(d, dict):
            raise ModelFormatError(f"Quality model must be a mapping, got {type(d).__name__}")
        try:
            return cls(
                quality_score_options=_first_present(d, "quality_score_options"),
                binned_scores=_first_present(d, "binned_scores"),
                assumed_read_length=_first_present(d, "assumed_read_length"),
                seed_weights=_first_present(d, "seed_weights", "seed_dist"),
                weights_from_one=_first_present(d, "weights_from_one", "distros_from_one"),
            )
        except ModelFormatError:
            raise
        except (TypeError, ValueError) as exc:
            raise ModelFormatError(f"Malformed quality model: {exc}") from exc

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "QualityScoreModel":
        try:
            with open(path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as exc:
            raise ModelFormatError(f"Quality model {path} is not valid JSON: {exc}") from exc
        model = cls.from_dict(data)
        logger.info(f"Loaded quality model from {path}: {len(model.quality_score_options)} scores, "
                    f"assumed read length {model.assumed_read_length}")
        return model

    def to_json(self, path: Union[str, Path]):
        with open(path, "w") as f:
            json.dump(self.to_dict(), f)

    def __eq__(self, other) -> bool:
        if not isinstance(other, QualityScoreModel):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __str__(self) -> str:
        binned = "true" if self.binned_scores else "false"
        return (
            f"QualityScoreModel: (rl: {self.assumed_read_length})\n"
            f"\tscores: {self.quality_score_options}\n"
            f"\tbinned? {binned}\n"
        )
