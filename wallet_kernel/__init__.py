"""
wallet_kernel -- account ledger core for the e-wallet terminal application.

Layers (leaf-first):
    db/         engine, declarative base, money column type, immutability listeners
    models/     ORM rows for ``accounts`` and ``transactions``
    domain/     pure values: clock, DTOs, amount parsing, user session, status messages
    services/   AccountRepository, TransactionLog, LedgerService (owns commit/rollback)
    selectors/  read-only audit queries

The presentation layer (``wallet_cli``) talks only to ``LedgerService``,
``UserSession`` and ``MessageBoard``.
"""
