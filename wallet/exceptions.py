class ImmutableTransaction(Exception):
    """A completed ledger entry was about to be modified."""
