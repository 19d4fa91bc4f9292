"""
Spinwheel - Randomized participant selection with history and statistics.

Spin a wheel of participants and keep score:
- Fair random selection that avoids picking the same winner twice in a row
- Deterministic rotation targets for the wheel animation
- Append-only spin history with per-participant statistics
- Shareable wheel configurations
"""

__version__ = "0.1.0"
