"""
Riff — Daily Prompt, Voting & Ranking Engine
=============================================
One prompt per day, one riff per user per day, one vote per user per riff.
Today's riffs are ranked into a leaderboard and the top three of every
closed day are settled into lifetime gold / silver / bronze tallies.

Package layout::

    riff/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Prompt catalog, limits, medal presentation
    ├── errors.py          # Engine error hierarchy
    ├── tasks.py           # Settlement loop (runs at every reset boundary)
    ├── __main__.py        # `python -m riff`: standalone settlement worker
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   ├── models.py      # ORM models (users, riffs, votes, medals)
    │   └── repository.py  # Riff persistence with atomic conditional writes
    ├── engine/
    │   ├── cycle.py       # Day key, daily prompt, reset boundary
    │   ├── ranking.py     # Leaderboard + medal derivation
    │   ├── snapshots.py   # Immutable riff snapshots handed to callers
    │   └── validation.py  # Content / username rules
    ├── services/
    │   ├── ledger.py      # Create / edit / vote / list riffs
    │   ├── settlement.py  # End-of-day medal settlement
    │   └── users.py       # Registration, profiles, medal history
    └── api/
        ├── main.py        # FastAPI app
        ├── deps.py        # Engine, ledger and JWT identity dependencies
        ├── errors.py      # Engine error → HTTP response mapping
        └── routes/        # Prompt, riff, leaderboard and user endpoints
"""

__version__ = "0.1.0"
