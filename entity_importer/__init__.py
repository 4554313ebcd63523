"""
Entity Importer

Declarative import of delimited files into structured entities.

An import profile names a record source, a target entity type and the bundles
it may produce. Field mappings bind source columns to destination properties
through an ordered chain of named transform plugins. From these the importer:

- Compiles executable pipeline definitions (source, process, destination)
- Resolves lookup dependencies between pipelines into an execution order
- Merges one or many uploaded CSV files into a single record stream
- Runs pipelines sequentially and reports an aggregate status
"""

__version__ = "0.1.0"
