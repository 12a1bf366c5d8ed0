"""
rowpool: concurrent worker-pool pipelines for tabular records.

Reads CSV records, dispatches each one to caller-supplied processing logic
across a bounded worker pool, and routes results to a success or failure
sink while tracking run totals.
"""

__version__ = "0.1.0"
