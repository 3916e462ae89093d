"""RankGate backend: rank-gated membership, forums and private chat sessions."""

__version__ = "0.1.0"
