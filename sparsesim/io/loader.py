"""Corpus ingestion from line-delimited JSON."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, TextIO, Union

from ..core.errors import IngestionError, InvalidVector
from ..core.vectors import Corpus, SparseVector

logger = logging.getLogger(__name__)


def _reject_constant(token: str):
    raise ValueError(f"non-finite number {token}")


def parse_record(text: str) -> Any:
    """
    Decode one JSON document strictly.

    ``NaN``, ``Infinity`` and ``-Infinity`` are not JSON and are rejected
    rather than decoded to non-finite floats.

    Raises:
        IngestionError: if the text is not valid JSON
    """
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except ValueError as e:
        reason = e.msg if isinstance(e, json.JSONDecodeError) else str(e)
        raise IngestionError(f"malformed JSON: {reason}") from e


def decode_record(
    record: Dict[str, Any],
    id_field: str = "pid",
    indices_field: str = "features",
    values_field: str = "scores"
) -> SparseVector:
    """Build a SparseVector from one decoded JSON object.
    
    Args:
        record: Decoded JSON object
        id_field: Name of the identifier field
        indices_field: Name of the feature id list
        values_field: Name of the weight list
        
    Returns:
        Validated SparseVector
        
    Raises:
        IngestionError: if a field is missing or has the wrong type
        InvalidVector: if the index/value invariant does not hold
    """
    if not isinstance(record, dict):
        raise IngestionError(f"expected a JSON object, got {type(record).__name__}")
    
    missing = [name for name in (id_field, indices_field, values_field) if name not in record]
    if missing:
        raise IngestionError(f"missing field(s): {', '.join(missing)}")
    
    vector_id = record[id_field]
    indices = record[indices_field]
    values = record[values_field]
    
    if not isinstance(vector_id, str):
        raise IngestionError(f"field {id_field!r} must be a string, got {type(vector_id).__name__}")
    if not isinstance(indices, list):
        raise IngestionError(f"field {indices_field!r} must be a list, got {type(indices).__name__}")
    if not isinstance(values, list):
        raise IngestionError(f"field {values_field!r} must be a list, got {type(values).__name__}")
    
    return SparseVector(id=vector_id, indices=indices, values=values)


def iter_vectors(
    lines: Iterable[str],
    source: Optional[str] = None,
    **fields: str
) -> Iterator[SparseVector]:
    """Decode vectors from an iterable of JSON lines, skipping blank lines."""
    for line_number, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        try:
            yield decode_record(parse_record(line), **fields)
        except IngestionError as e:
            raise IngestionError(
                f"line {line_number}: {e.message}",
                source=source,
                line_number=line_number
            ) from e
        except InvalidVector as e:
            raise e.at_line(line_number) from e


def load_corpus(
    source: Union[str, Path, TextIO],
    id_field: str = "pid",
    indices_field: str = "features",
    values_field: str = "scores"
) -> Corpus:
    """
    Load the whole corpus into memory.
    
    Any bad record aborts the load; no partial corpus is returned.
    
    Args:
        source: Path to a JSON-lines file, or an open text stream
        id_field: Name of the identifier field
        indices_field: Name of the feature id list
        values_field: Name of the weight list
        
    Returns:
        Loaded Corpus
    """
    fields = dict(id_field=id_field, indices_field=indices_field, values_field=values_field)
    
    if isinstance(source, (str, Path)):
        path = Path(source)
        try:
            with open(path, "r", encoding="utf-8") as fh:
                vectors: List[SparseVector] = list(iter_vectors(fh, source=str(path), **fields))
        except OSError as e:
            raise IngestionError(f"cannot read {path}: {e}", source=str(path)) from e
        except UnicodeDecodeError as e:
            raise IngestionError(f"{path} is not valid UTF-8: {e}", source=str(path)) from e
        name = str(path)
    else:
        name = getattr(source, "name", "<stream>")
        vectors = list(iter_vectors(source, source=name, **fields))
    
    corpus = Corpus(vectors)
    
    duplicates = corpus.duplicate_ids()
    if duplicates:
        logger.warning(
            f"{len(duplicates)} duplicate id(s) in {name}, results for them are ambiguous: "
            f"{', '.join(duplicates[:5])}{' ...' if len(duplicates) > 5 else ''}"
        )
    
    logger.debug(f"Loaded {len(corpus)} vectors from {name}")
    return corpus
