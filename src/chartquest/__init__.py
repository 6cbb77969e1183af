"""chartquest: Helm chart ingestion and questions.yaml synthesis."""

__version__ = "0.1.0"
