"""I/O utilities for chimviz"""

from .readers import (
    DensityReader, read_density,
    SequenceLengthReader, read_lengths,
    IntegrationReader, read_integrations,
    GTFReader, read_gtf,
    ExpressionReader, read_expression,
)

__all__ = [
    'DensityReader', 'read_density',
    'SequenceLengthReader', 'read_lengths',
    'IntegrationReader', 'read_integrations',
    'GTFReader', 'read_gtf',
    'ExpressionReader', 'read_expression']
