from forum.services.reactions.ledger import (
    ReactionCounts,
    ReactionLedger,
    ReactionLedgerError,
    SqlReactionLedger,
)

__all__ = ["ReactionCounts", "ReactionLedger", "ReactionLedgerError", "SqlReactionLedger"]
