"""
forummoney — Reward Currency Rules for Discussion Forums
=========================================================
Credits and debits a "money" balance on forum accounts when they post,
start discussions and receive likes, and takes the reward back when that
content is hidden or deleted.

Package layout::

    forummoney/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Setting keys, permission names
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + session helper
    │   ├── models.py      # Accounts, groups, tags, discussions, posts, settings
    │   └── seed.py        # Default money settings
    ├── engine/
    │   ├── events.py      # ForumEvent envelope + typed money events
    │   ├── money.py       # MoneyEngine: balance mutation + handler table
    │   ├── eligibility.py # Tag-based opt-out
    │   ├── content.py     # Mention-stripping length filter
    │   ├── rules.py       # RuleConfig snapshot
    │   ├── cache.py       # In-memory settings cache
    │   ├── permissions.py # Permission oracle interface
    │   └── notifications.py # BalanceUpdated fan-out + PG NOTIFY
    └── services/
        ├── event_service.py      # Envelope → entities → engine → commit
        ├── account_service.py    # Account store
        ├── permission_service.py # Group-based permission oracle
        └── settings_service.py   # Settings reads / writes
"""

__version__ = "0.1.0"
