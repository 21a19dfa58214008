"""
flexihmm: Hidden Markov Model part-of-speech tagging with Viterbi decoding.

Trains sparse bigram transition and emission tables from tagged sentences and
tags new sentences with the most likely tag sequence.
"""

__version__ = "1.0.0"

from flexihmm.config import HMMConfig
from flexihmm.errors import DataError, DecodeError, EmptyInputError, NoReachableStateError
from flexihmm.model import HMMModel, ModelBuilder, train
from flexihmm.viterbi import TaggedSentence, decode, decode_batch

__all__ = [
    'HMMConfig',
    'HMMModel',
    'ModelBuilder',
    'TaggedSentence',
    'DataError',
    'DecodeError',
    'EmptyInputError',
    'NoReachableStateError',
    'train',
    'decode',
    'decode_batch',
    '__version__',
]
