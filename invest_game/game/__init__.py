"""
Investment Game Core (FINAL / FROZEN)

A turn-based market simulation: scheduled events move sector prices,
the player trades with a fee, and the game ends with forced liquidation,
a diversification bonus and an investor profile.

Core doctrine:
- There is exactly ONE turn state machine, driven by tick(dt, paused).
- Prices and cash are integers (won). Rates are percents.
- Every trade is recorded by the ledger before the notifier fans out.
- Randomness is injected (random.Random), never global.

Layer responsibilities:
- core      : defines WHAT the game IS (types, events, repository contract, signals)
- catalog   : defines WHEN market events happen
- effects   : defines HOW prices move
- trading   : defines HOW cash and holdings move
- history   : records immutable facts (trades, events, per-turn snapshots)
- analytics : derives the GameResult from facts (pure)
- state_machine / clock / session : drive the game
"""
