"""fusegraph — subgraph pattern matching and rewriting for computation DAGs."""

__version__ = "0.4.0"
