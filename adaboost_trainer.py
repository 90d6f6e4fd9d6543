from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from typing import Hashable, Iterable

import numpy as np

from classifier import Classifier, GeneratorLike, as_generator_fn
from errors import InvalidArgumentError, UnreadyEnsembleError
from record_table import RecordTable
from records import Record
from weighted_sampler import WeightedSampler

logger = logging.getLogger(__name__)

# Floor on the weighted error used for vote weights; a perfect weak
# classifier gets a large finite vote.
MIN_ERROR = 1e-10


@dataclass
class AdaBoostParams:
    max_models: int = 50
    # Rejected classifiers (error > 0.5) that may be regenerated over a whole run.
    max_retries: int = 50
    sampling: str = "reweight"  # one of: reweight, resample
    random_state: int = 0

    def __post_init__(self) -> None:
        if self.max_models < 1:
            raise InvalidArgumentError("max_models must be >= 1")
        if self.max_retries < 0:
            raise InvalidArgumentError("max_retries must be >= 0")
        if self.sampling not in {"reweight", "resample"}:
            raise InvalidArgumentError("sampling must be one of: reweight, resample")


@dataclass(frozen=True)
class WeakClassifierEntry:
    classifier: Classifier
    vote_weight: float


class AdaBoostM1(Classifier):
    """AdaBoost.M1 ensemble of weak classifiers with a weighted majority vote.

    With ``sampling="reweight"`` every round trains on all records under the
    current distribution. With ``sampling="resample"`` every round after the
    first trains on N records drawn with replacement from that distribution,
    all weighted equally; errors and reweighting are still measured on the
    full training set.
    """

    def __init__(
        self,
        generator: GeneratorLike,
        params: AdaBoostParams | None = None,
        rng: np.random.Generator | None = None,
    ) -> None:
        self.generator = generator
        self._generate = as_generator_fn(generator)
        self.params = params or AdaBoostParams()
        self.rng = rng if rng is not None else np.random.default_rng(self.params.random_state)
        self.sampler: WeightedSampler[int] = WeightedSampler()

        self._entries: list[WeakClassifierEntry] = []
        self.metrics: dict = {}

    @property
    def entries(self) -> tuple[WeakClassifierEntry, ...]:
        return tuple(self._entries)

    @property
    def is_fitted(self) -> bool:
        return len(self._entries) > 0

    @staticmethod
    def vote_weight(error: float) -> float:
        error = max(error, MIN_ERROR)
        return math.log((1.0 - error) / error)

    @staticmethod
    def reweight(distribution: np.ndarray, correct: np.ndarray, error: float) -> np.ndarray:
        """Scale the correctly classified records by ``error / (1 - error)``.

        Below 0.5 error this shifts mass onto the misclassified records, above
        it onto the correct ones. The result sums to 1.
        """
        if correct.all() or not correct.any():
            # A single class of outcome keeps its relative weights.
            return distribution
        beta = error / (1.0 - error)
        updated = np.where(correct, distribution * beta, distribution)
        return updated / updated.sum()

    def _training_table(
        self,
        table: RecordTable,
        distribution: np.ndarray,
        resample: bool,
    ) -> RecordTable:
        if self.params.sampling == "reweight":
            return table.with_weights(distribution)
        if not resample:
            return table

        n = len(table)
        if not self.sampler.is_ready:
            self.sampler.prepare(range(n), distribution)
        rows = self.sampler.draw_many(n, self.rng)
        return RecordTable([table.records[i] for i in rows], table.weights)

    def fit(self, records: RecordTable | Iterable[Record]) -> AdaBoostM1:
        if isinstance(records, RecordTable):
            records = records.records
        records = tuple(records)
        n = len(records)
        distribution = np.full(n, 1.0 / n if n else 0.0, dtype=np.float64)
        # Validates the records; training always starts from a uniform
        # distribution, whatever weights the records carry.
        table = RecordTable(records, distribution)
        self.sampler.discard()

        entries: list[WeakClassifierEntry] = []
        rounds: list[dict] = []
        retries_used = 0
        stop_reason = "max_models"
        # The first round always sees every record once.
        resample = False

        while len(entries) < self.params.max_models:
            classifier = self._generate(self._training_table(table, distribution, resample))

            correct = np.fromiter(
                (classifier.is_correct(record) for record in records),
                dtype=bool,
                count=n,
            )
            error = float(distribution[~correct].sum())

            if error > 0.5:
                rounds.append({"error": error, "vote_weight": 0.0, "accepted": False})
                logger.debug("Rejected weak classifier: error=%.6f", error)
                if retries_used >= self.params.max_retries:
                    stop_reason = "retries_exhausted"
                    logger.warning(
                        "Retry budget of %d exhausted after %d accepted classifiers",
                        self.params.max_retries,
                        len(entries),
                    )
                    break
                retries_used += 1
                # The retry sees a distribution moved toward the records the
                # rejected classifier got right.
                distribution = self.reweight(distribution, correct, error)
                self.sampler.discard()
                resample = self.params.sampling == "resample"
                continue

            alpha = self.vote_weight(error)
            entries.append(WeakClassifierEntry(classifier=classifier, vote_weight=alpha))
            rounds.append({"error": error, "vote_weight": alpha, "accepted": True})
            logger.debug(
                "Accepted weak classifier %d: error=%.6f vote_weight=%.6f",
                len(entries),
                error,
                alpha,
            )

            if error == 0.0:
                stop_reason = "perfect_classifier"
                break
            if len(entries) == self.params.max_models:
                break

            distribution = self.reweight(distribution, correct, error)
            self.sampler.discard()
            resample = self.params.sampling == "resample"

        self.metrics = {
            "sampling": self.params.sampling,
            "n_models": len(entries),
            "retries_used": retries_used,
            "stop_reason": stop_reason,
            "rounds": rounds,
            "final_distribution": distribution,
        }

        if not entries:
            self._entries = []
            raise UnreadyEnsembleError("could not build weak classifiers")

        self._entries = entries
        logger.info(
            "AdaBoost.M1 trained %d/%d weak classifiers (%d retries, stop=%s)",
            len(entries),
            self.params.max_models,
            retries_used,
            stop_reason,
        )
        return self

    def vote(self, record: Record) -> dict[Hashable, float]:
        """Summed vote weight per predicted label, in order of first vote."""
        if not self._entries:
            raise UnreadyEnsembleError("Model must be fitted before prediction")

        votes: dict[Hashable, float] = {}
        for entry in self._entries:
            label = entry.classifier.predict(record)
            votes[label] = votes.get(label, 0.0) + entry.vote_weight
        return votes

    def predict(self, record: Record) -> Hashable:
        best_label = None
        best_score = -float("inf")
        for label, score in self.vote(record).items():
            if score > best_score:
                best_label = label
                best_score = score
        return best_label
