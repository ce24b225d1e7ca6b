"""LifePath: deterministic scoring, simulation and roadmap planning for life and career paths."""

__version__ = "0.1.0"
