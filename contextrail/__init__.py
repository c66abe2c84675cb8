"""contextrail: staged context enrichment for conversational agents.

Runs message, session, memory and social enrichment stages either
sequentially or concurrently, and synthesizes their results into a
derived behavioral profile.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
