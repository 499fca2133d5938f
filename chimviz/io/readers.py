"""
I/O Readers

Handles reading of the tab-delimited inputs: density tracks, sequence
lengths, junctions, pathogen annotation and splice site usage.
"""

from __future__ import annotations
from typing import Dict, List, Optional, Sequence, Tuple
import logging

import pandas as pd
from Bio import SeqIO

from ..clustering import GeneClusterer
from ..config import ClusteringConfig
from ..types import (
    ExpressionProfile,
    ExpressionSite,
    GeneSite,
    GenomeComponent,
    Integration,
    PathLike,
    PathogenModel,
    SiteTable,
    Transcript,
)
from ..utils import get_attribute

logger = logging.getLogger(__name__)


def read_table(filepath: PathLike, names: Sequence[str]) -> pd.DataFrame:
    """
    Read a headerless tab-delimited file into a string DataFrame

    Rows with fewer fields than names are skipped, extra fields are
    ignored. Blank lines and '#' comment lines are dropped.

    Args:
        filepath: Path to the file
        names: Column names, one per required field

    Returns:
        DataFrame with one str column per name
    """
    n_columns = len(names)
    rows: List[List[str]] = []
    malformed = 0

    with open(filepath, 'r') as f:
        for line in f:
            line = line.rstrip('\r\n')
            if not line.strip() or line.startswith('#'):
                continue
            fields = line.split('\t')
            if len(fields) < n_columns:
                malformed += 1
                logger.debug(f"{filepath}: skipping row with {len(fields)} fields: {line[:80]!r}")
                continue
            rows.append(fields[:n_columns])

    if malformed:
        logger.warning(f"{filepath}: skipped {malformed} rows with fewer than {n_columns} fields")

    return pd.DataFrame(rows, columns=list(names), dtype=str)


class DensityReader:
    """Reads binned feature density tracks"""

    COLUMNS = ['seqid', 'start', 'end', 'density']

    @staticmethod
    def read(filepath: PathLike) -> Dict[str, List[float]]:
        """
        Read density samples per sequence

        Expected format:
        seqid  start  end     density
        chr1   0      100000  0.42

        Args:
            filepath: Path to density TSV

        Returns:
            seqid -> density samples, sequences and samples in file order
        """
        df = read_table(filepath, DensityReader.COLUMNS)
        df['density'] = pd.to_numeric(df['density'], errors='coerce')

        densities: Dict[str, List[float]] = {}
        for seqid, density in zip(df['seqid'], df['density']):
            densities.setdefault(seqid, []).append(float(density))

        logger.info(f"Loaded {len(df)} density samples on {len(densities)} sequences")
        return densities


def read_density(filepath: PathLike) -> Dict[str, List[float]]:
    """
    Convenience function to read a density track

    Args:
        filepath: Path to density TSV

    Returns:
        seqid -> density samples
    """
    return DensityReader.read(filepath)


class SequenceLengthReader:
    """Reads reference sequence lengths from a FASTA index or a FASTA file"""

    @staticmethod
    def read(filepath: PathLike) -> Dict[str, int]:
        """
        Read a .fai index (seqid, length, offset, ...)

        Args:
            filepath: Path to .fai file

        Returns:
            seqid -> length (bp); the first entry of a repeated seqid wins
        """
        df = read_table(filepath, ['seqid', 'length'])
        df['length'] = pd.to_numeric(df['length'], errors='coerce')

        invalid = df['length'].isna()
        if invalid.any():
            logger.warning(f"{filepath}: skipped {int(invalid.sum())} sequences with a non-numeric length")
        df = df[~invalid].drop_duplicates(subset='seqid', keep='first')

        lengths = {seqid: int(length) for seqid, length in zip(df['seqid'], df['length'])}
        logger.info(f"Loaded lengths of {len(lengths)} sequences")
        return lengths

    @staticmethod
    def from_fasta(filepath: PathLike) -> Dict[str, int]:
        """
        Derive sequence lengths from a FASTA file

        Args:
            filepath: Path to FASTA file

        Returns:
            record id -> sequence length (bp)
        """
        lengths: Dict[str, int] = {}
        for record in SeqIO.parse(str(filepath), 'fasta'):
            lengths.setdefault(record.id, len(record.seq))

        logger.info(f"Measured {len(lengths)} sequences in {filepath}")
        return lengths


def read_lengths(filepath: PathLike) -> Dict[str, int]:
    """
    Convenience function to read sequence lengths

    FASTA files (.fa, .fasta, .fna) are measured with Biopython, anything
    else is read as a .fai index.

    Args:
        filepath: Path to .fai or FASTA file

    Returns:
        seqid -> length (bp)
    """
    if str(filepath).lower().endswith(('.fa', '.fasta', '.fna')):
        return SequenceLengthReader.from_fasta(filepath)
    return SequenceLengthReader.read(filepath)


class IntegrationReader:
    """Reads host/pathogen chimeric junctions"""

    COLUMNS = ['seqid1', 'seqid2', 'pos1', 'pos2', 'count', 'gene1', 'gene2']

    @staticmethod
    def read(filepath: PathLike) -> Tuple[List[Integration], Dict[str, GeneSite]]:
        """
        Read junctions and the host sites they hit

        Expected format:
        host_seqid  path_seqid  host_pos  path_pos  count  host_gene  path_gene

        Sites are keyed "seqid:pos"; counts of repeated keys are summed.

        Args:
            filepath: Path to junction TSV

        Returns:
            Tuple of (integrations, sites keyed "seqid:pos")
        """
        df = read_table(filepath, IntegrationReader.COLUMNS)
        for col in ['pos1', 'pos2', 'count']:
            df[col] = pd.to_numeric(df[col], errors='coerce')

        missing_counts = df['count'].isna()
        if missing_counts.any():
            logger.warning(f"{filepath}: {int(missing_counts.sum())} junctions without a count, using 0")
            df.loc[missing_counts, 'count'] = 0

        integrations: List[Integration] = []
        sites: Dict[str, GeneSite] = {}
        columns = zip(df['seqid1'], df['seqid2'], df['pos1'], df['pos2'], df['count'], df['gene2'])
        for host_seqid, path_seqid, host_pos, path_pos, count, gene in columns:
            integrations.append(Integration(
                host_seqid=host_seqid,
                path_seqid=path_seqid,
                host_pos=float(host_pos),
                path_pos=float(path_pos),
                count=float(count),
            ))

            key = f"{host_seqid}:{_format_position(host_pos)}"
            site = sites.get(key)
            if site is None:
                site = GeneSite(name=gene, position=(host_seqid, float(host_pos)), count=0.0)
                sites[key] = site
            site['count'] += float(count)

        logger.info(f"Loaded {len(integrations)} junctions hitting {len(sites)} host sites")
        return integrations, sites


def _format_position(value: float) -> str:
    if pd.isna(value):
        return 'NaN'
    return str(int(value)) if float(value).is_integer() else str(value)


def read_integrations(
    filepath: PathLike,
    config: Optional[ClusteringConfig] = None
) -> Tuple[List[Integration], SiteTable]:
    """
    Convenience function to read junctions and cluster their host sites

    Args:
        filepath: Path to junction TSV
        config: ClusteringConfig instance (uses defaults if None)

    Returns:
        Tuple of (integrations, seqid -> clustered sites)
    """
    integrations, sites = IntegrationReader.read(filepath)
    return integrations, GeneClusterer(config=config).cluster(sites)


class GTFReader:
    """Reads pathogen transcript annotation in GTF format"""

    COLUMNS = ['seqid', 'source', 'type', 'start', 'end', 'score', 'strand', 'frame', 'attributes']

    @staticmethod
    def read(filepath: PathLike) -> PathogenModel:
        """
        Read transcripts, LTRs and splice sites from a GTF file

        transcript rows set gene names, exon and CDS rows collect intervals
        in file order, long_terminal_repeat rows become 'ltr' components
        named after their note attribute. Donors are the ends of every exon
        but the last of a transcript, acceptors the starts of every exon but
        the first.

        Args:
            filepath: Path to GTF file

        Returns:
            PathogenModel with components sorted by position
        """
        df = read_table(filepath, GTFReader.COLUMNS)
        df['start'] = pd.to_numeric(df['start'], errors='coerce')
        df['end'] = pd.to_numeric(df['end'], errors='coerce')

        invalid = df['start'].isna() | df['end'].isna()
        if invalid.any():
            logger.warning(f"{filepath}: skipped {int(invalid.sum())} rows with non-numeric coordinates")
        df = df[~invalid]

        transcripts: Dict[str, Transcript] = {}
        components: List[GenomeComponent] = []
        genome_end = 0

        for row in df.itertuples(index=False):
            start, end = int(row.start), int(row.end)
            genome_end = max(genome_end, end)
            feature = row.type.lower()
            tid = get_attribute(row.attributes, 'transcript_id')

            if feature in ('transcript', 'exon', 'cds') and tid:
                transcript = transcripts.setdefault(tid, Transcript(exons=[], cds=[], gene_name=''))
                if feature == 'transcript':
                    transcript['gene_name'] = get_attribute(row.attributes, 'gene_name') or ''
                elif feature == 'exon':
                    transcript['exons'].append((start, end))
                else:
                    transcript['cds'].append((start, end))
            elif feature == 'long_terminal_repeat':
                components.append(GenomeComponent(
                    type='ltr',
                    position=(start, end),
                    name=get_attribute(row.attributes, 'note') or '',
                ))

        components.extend(GTFReader.splice_sites(transcripts))
        components.sort(key=_component_start)

        genes: Dict[str, List[str]] = {}
        for tid, transcript in transcripts.items():
            genes.setdefault(transcript['gene_name'], []).append(tid)

        logger.info(f"Loaded {len(transcripts)} transcripts of {len(genes)} genes, "
                    f"{len(components)} genome components, genome end {genome_end}")
        return PathogenModel(
            transcripts=transcripts,
            genome_end=genome_end,
            genome_components=components,
            genes=genes,
        )

    @staticmethod
    def splice_sites(transcripts: Dict[str, Transcript]) -> List[GenomeComponent]:
        """
        Unique donor (SD) and acceptor (SA) sites in first-seen order

        Args:
            transcripts: Transcript models with exons in file order

        Returns:
            'da' components, donors first
        """
        donors: Dict[int, None] = {}
        acceptors: Dict[int, None] = {}
        for transcript in transcripts.values():
            exons = transcript['exons']
            for left, right in zip(exons, exons[1:]):
                donors.setdefault(left[1])
                acceptors.setdefault(right[0])

        sites = [GenomeComponent(type='da', position=pos, name=f"SD{i}") for i, pos in enumerate(donors)]
        sites += [GenomeComponent(type='da', position=pos, name=f"SA{i}") for i, pos in enumerate(acceptors)]
        return sites


def _component_start(component: GenomeComponent) -> int:
    position = component['position']
    return position[0] if isinstance(position, tuple) else position


def read_gtf(filepath: PathLike) -> PathogenModel:
    """
    Convenience function to read pathogen annotation

    Args:
        filepath: Path to GTF file

    Returns:
        PathogenModel
    """
    return GTFReader.read(filepath)


class ExpressionReader:
    """Reads per-sample splice site usage"""

    COLUMNS = ['seqid', 'pos', 'cov', 'sample', 'dp', 'dm', 'dn', 'ap', 'am', 'an']

    @staticmethod
    def read(filepath: PathLike) -> ExpressionProfile:
        """
        Read donor and acceptor usage per pathogen position

        Rows whose position is not an integer (such as a header) are
        skipped. Coverage goes to both donor and acceptor entries; the
        donor value is dp, the acceptor value ap.

        Args:
            filepath: Path to usage TSV

        Returns:
            ExpressionProfile keyed by position
        """
        df = read_table(filepath, ExpressionReader.COLUMNS)
        df['pos'] = pd.to_numeric(df['pos'], errors='coerce')
        df = df[df['pos'].notna() & (df['pos'] % 1 == 0)].copy()
        for col in ['cov', 'dp', 'ap']:
            df[col] = pd.to_numeric(df[col], errors='coerce')

        donors: Dict[int, ExpressionSite] = {}
        acceptors: Dict[int, ExpressionSite] = {}
        for row in df.itertuples(index=False):
            pos = int(row.pos)
            donor = donors.setdefault(pos, ExpressionSite(pos=pos, cov=[], val=[]))
            donor['cov'].append(float(row.cov))
            donor['val'].append(float(row.dp))
            acceptor = acceptors.setdefault(pos, ExpressionSite(pos=pos, cov=[], val=[]))
            acceptor['cov'].append(float(row.cov))
            acceptor['val'].append(float(row.ap))

        logger.info(f"Loaded splice site usage at {len(donors)} positions from {len(df)} rows")
        return ExpressionProfile(donors=donors, acceptors=acceptors)


def read_expression(filepath: PathLike) -> ExpressionProfile:
    """
    Convenience function to read splice site usage

    Args:
        filepath: Path to usage TSV

    Returns:
        ExpressionProfile keyed by position
    """
    return ExpressionReader.read(filepath)
