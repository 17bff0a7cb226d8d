"""
signals package

Implements the sentiment signal reconciliation engine:
- Contrarian BUY/SELL/HOLD classification of crowd buy share
- Per-symbol transition detection against the previous cycle
- Composite signal over two designated symbols
- Time-bounded correlation of external alerts with polled sentiment
"""
