"""CodeStink: heuristic cleanliness scoring for TypeScript code."""

__version__ = "0.3.0"
