"""Size and shape statistics of an index."""

from dataclasses import asdict, dataclass
from typing import Dict

from indexing.oracle import PositionOracle
from storage.sorted_storage import SortedStorage


@dataclass(frozen=True)
class IndexStats:
    leaf_segments: int
    data_size: int      # bytes held by the key buffer
    index_size: int     # bytes held by the oracle
    height: int

    @classmethod
    def collect(cls, storage: SortedStorage, oracle: PositionOracle) -> 'IndexStats':
        return cls(
            leaf_segments=oracle.segment_count(),
            data_size=storage.nbytes,
            index_size=oracle.footprint_bytes(),
            height=oracle.height(),
        )

    def as_dict(self) -> Dict[str, int]:
        """Mapping keyed the way stats() reports it: 'leaf segments', 'data size', ..."""
        return {k.replace("_", " "): v for k, v in asdict(self).items()}
