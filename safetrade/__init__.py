"""
SafeTrade Messaging — Source Package
=====================================

Fraud-risk scoring for marketplace chat messages:
    - main.py            : FastAPI application and HTTP endpoints
    - messaging.py       : Send pipeline (authorize, score, block or persist)
    - detector.py        : Fraud scoring engine (lexicon + categories + heuristics)
    - rules.py           : Immutable rule tables and shipped rule sets
    - scoring_client.py  : Local and remote scorers with fail-open fallback
    - audit.py           : Fraud-attempt audit trail
    - store.py           : Thread-safe in-memory conversation store
    - auth.py            : API key authentication dependency
    - config.py          : Environment configuration (.env aware)
    - models.py          : Pydantic request/response schemas
"""
