"""
CI Quality Insights

Analytics core that turns CI test-run and test-result records into
per-service quality scorecards, change-impact reports and anomaly lists.

Packages:
    core         - records, label resolution, ports, errors, observers
    analysis     - aggregation, scorecards, suggestions, quality insights
    impact       - dependency graph, service registry, impact analyzer
    anomaly      - per-test-case and suite-wide anomaly detectors
    adapters     - record sources (paginated transport, JSON files, memory)
    config       - settings and YAML loaders
    application  - insights service and dependency container
"""

__version__ = "1.0.0"
