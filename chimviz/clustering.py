"""
Gene site clusterer

Collapses repeated annotations of the same gene on a host sequence.
Junction callers report one site per breakpoint, so a single gene hit by
many nearby junctions would otherwise get a label per breakpoint.
"""

from __future__ import annotations
from typing import Dict, Iterable, List, Mapping, Optional, Union, get_args
import logging

from .config import ClusteringConfig
from .types import GeneSite, MergePolicy, SiteTable
from .utils import is_missing

logger = logging.getLogger(__name__)

INTERGENIC = '-'
MERGE_POLICIES = get_args(MergePolicy)


class GeneClusterer:
    """
    Tolerance-based deduplication of annotated sites

    Two sites are duplicates when they share seqid and name and their
    coordinates differ by at most the tolerance. Intergenic sites ('-')
    are only compared with other intergenic sites. Comparison is made
    against sites already kept, in input order, so the first site of a
    run is the representative.
    """

    def __init__(
        self,
        tolerance: Optional[int] = None,
        merge_policy: Optional[MergePolicy] = None,
        config: Optional[ClusteringConfig] = None
    ) -> None:
        """
        Initialize GeneClusterer

        Args:
            tolerance: Maximum distance between duplicates in bp (uses config if None)
            merge_policy: 'first_wins' or 'sum_counts' (uses config if None)
            config: ClusteringConfig instance (uses defaults if None)
        """
        self.config: ClusteringConfig = config or ClusteringConfig()
        self.tolerance: int = self.config.tolerance if tolerance is None else tolerance
        self.merge_policy: MergePolicy = self.config.merge_policy if merge_policy is None else merge_policy

        if self.merge_policy not in MERGE_POLICIES:
            raise ValueError(
                f"Unknown merge policy '{self.merge_policy}', expected one of {MERGE_POLICIES}"
            )
        if self.tolerance < 0:
            raise ValueError(f"Tolerance must be non-negative, got {self.tolerance}")

    def cluster(self, sites: Union[Mapping[str, GeneSite], Iterable[GeneSite]]) -> SiteTable:
        """
        Deduplicate sites and bucket them by sequence

        Args:
            sites: Sites keyed by any identifier (mapping order is kept), or an iterable

        Returns:
            seqid -> sites sorted by coordinate. Input sites are never modified.
        """
        items = sites.values() if isinstance(sites, Mapping) else sites

        buckets: Dict[str, List[GeneSite]] = {}
        n_input = 0
        n_missing = 0

        for site in items:
            n_input += 1
            seqid, coord = site['position']
            if is_missing(coord):
                n_missing += 1
                continue

            bucket = buckets.setdefault(seqid, [])
            kept = self._find_duplicate(bucket, site)
            if kept is None:
                bucket.append(GeneSite(name=site['name'], position=(seqid, coord), count=site['count']))
            elif self.merge_policy == 'sum_counts':
                kept['count'] += site['count']

        for bucket in buckets.values():
            bucket.sort(key=lambda s: s['position'][1])

        if n_missing:
            logger.warning(f"Skipped {n_missing} sites without a usable coordinate")

        n_kept = sum(len(b) for b in buckets.values())
        logger.debug(f"Clustered {n_input} sites into {n_kept} across {len(buckets)} sequences "
                     f"(tolerance={self.tolerance}bp, policy={self.merge_policy})")
        return buckets

    def _find_duplicate(self, bucket: List[GeneSite], site: GeneSite) -> Optional[GeneSite]:
        coord = site['position'][1]
        for kept in bucket:
            if kept['name'] == site['name'] and abs(kept['position'][1] - coord) <= self.tolerance:
                return kept
        return None


def cluster_sites(
    sites: Union[Mapping[str, GeneSite], Iterable[GeneSite]],
    tolerance: int = 100000,
    merge_policy: MergePolicy = 'first_wins'
) -> SiteTable:
    """
    Convenience function to deduplicate sites

    Args:
        sites: Sites keyed by any identifier, or an iterable
        tolerance: Maximum distance between duplicates (bp)
        merge_policy: 'first_wins' or 'sum_counts'

    Returns:
        seqid -> sites sorted by coordinate
    """
    return GeneClusterer(tolerance=tolerance, merge_policy=merge_policy).cluster(sites)
