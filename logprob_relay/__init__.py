"""logprob_relay: streaming relay for exploring per-token log-probabilities."""

__version__ = "0.1.0"
