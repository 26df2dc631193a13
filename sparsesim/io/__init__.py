"""Input and output boundaries: JSON-lines corpus in, JSON-lines results out."""

from .loader import decode_record, iter_vectors, load_corpus, parse_record
from .writer import dump_result, result_to_dict, write_results

__all__ = [
    "decode_record",
    "iter_vectors",
    "load_corpus",
    "parse_record",
    "dump_result",
    "result_to_dict",
    "write_results",
]
