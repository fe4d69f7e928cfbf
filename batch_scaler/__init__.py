"""Queue-driven auto-scaling of AWS Batch video workers."""

__version__ = "1.0.0"
