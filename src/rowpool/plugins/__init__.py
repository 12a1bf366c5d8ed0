"""Row sources and sinks."""

from rowpool.plugins.protocols import RowSinkProtocol, RowSourceProtocol
from rowpool.plugins.sinks.csv_sink import CSVRowSink
from rowpool.plugins.sources.csv_source import CSVRowSource

__all__ = [
    "CSVRowSink",
    "CSVRowSource",
    "RowSinkProtocol",
    "RowSourceProtocol",
]
