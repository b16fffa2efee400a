from synclattice.sync.fingerprint import pair_fingerprint
from synclattice.sync.pair import PairSynchronizer

__all__ = ["PairSynchronizer", "pair_fingerprint"]
