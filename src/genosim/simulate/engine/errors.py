"""
Error taxonomy for the simulation engine.

Every failure that is local to one contig or one call derives from
GenosimError, so the runner can skip the offending unit of work and keep
going. The subclasses also derive from ValueError because each one reports
a bad input rather than a broken environment.
"""


class GenosimError(Exception):
    """Base class for recoverable simulation errors."""


class InvalidWeightsError(GenosimError, ValueError):
    """Weight vector is empty, all zero, negative or not finite."""


class InvalidBaseError(GenosimError, ValueError):
    """An N (or unknown) base was found where a concrete base is required."""


class MismatchedWeightsError(GenosimError, ValueError):
    """Region weight vector length differs from the sequence length."""


class ReadLongerThanSequenceError(GenosimError, ValueError):
    """Requested read (or fragment) does not fit in the sequence."""

    def __init__(self, read_length: int, sequence_length: int, contig: str = ""):
        self.read_length = read_length
        self.sequence_length = sequence_length
        self.contig = contig
        where = f" '{contig}'" if contig else ""
        super().__init__(
            f"Read length {read_length} exceeds sequence{where} length {sequence_length}"
        )


class ModelFormatError(GenosimError, ValueError):
    """Serialized or in-memory statistical model is malformed."""


class InvalidVariantError(GenosimError, ValueError):
    """Variant alleles or genotype violate the variant type contract."""
