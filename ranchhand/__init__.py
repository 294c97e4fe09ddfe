"""
Ranchhand — Ranch Ledger & Weekly Report Bot for Discord
==========================================================
Reads gather logs (eggs, milk, herd trades) posted into one Discord
channel, keeps them in an append-only ledger, answers totals and
leaderboard commands, and posts a weekly report before resetting the
week.

Package layout::

    ranchhand/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Presentation constants + item types
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   ├── models.py      # ORM models (gathers, subscribers, settings, audit)
    │   └── seed.py        # Default settings seeder
    ├── engine/
    │   ├── events.py      # ParsedGather / GatherCandidate dataclasses
    │   ├── extractor.py   # Priority-ordered text matchers
    │   ├── validation.py  # Amount + attribution checks
    │   └── clock.py       # Epoch-ms helpers, "since" parsing, local clock
    ├── services/
    │   ├── ledger_service.py     # Ingest pipeline, dedup, append, prune
    │   ├── stats_service.py      # Totals / leaderboard / weekly rollups
    │   ├── report_service.py     # Derived revenue + report composition
    │   ├── embeds.py             # Embed + plain-text renderings
    │   ├── identity_service.py   # Bounded display-name fan-out
    │   ├── delivery_service.py   # Batched delivery sinks
    │   ├── weekly_cycle.py       # Aggregate → compose → deliver → prune
    │   ├── scheduler_service.py  # Weekly slot + recurrence marker
    │   ├── settings_service.py   # Key-value store access
    │   ├── subscriber_service.py # DM report opt-in / opt-out
    │   └── admin_service.py      # Audit-logged privileged actions
    ├── bot/
    │   ├── core.py        # Bot subclass, cog loader
    │   └── cogs/
    │       ├── gathers.py # on_message → ledger
    │       ├── ranch.py   # Slash commands
    │       └── tasks.py   # Minute tick for the weekly report
    └── api/
        ├── main.py        # FastAPI app
        ├── deps.py        # Engine / config dependencies
        └── routes/        # Read-only stats endpoints
"""

__version__ = "0.1.0"
